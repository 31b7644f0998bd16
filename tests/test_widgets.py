"""Tests for the file and cd widgets."""

from pathlib import Path

import pytest

from skimline.config import Settings
from skimline.widgets import CdWidget, FileWidget
from tests.helpers import FakeSelector


@pytest.fixture
def tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("")
    (tmp_path / ".cache").mkdir()
    (tmp_path / "a file").write_text("")
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestFileWidget:
    def test_inserts_quoted_selections(self, tree: Path, settings: Settings) -> None:
        selector = FakeSelector(["a file", "src/app.py"])
        assert FileWidget(settings, selector).run() == "a\\ file src/app.py "
        assert selector.last.flags == ["-m"]
        assert set(selector.last.lines) == {"src", "a file", "src/app.py"}

    def test_cancel_inserts_nothing(self, tree: Path, settings: Settings) -> None:
        assert FileWidget(settings, FakeSelector()).run() == ""

    def test_custom_command(self, tree: Path) -> None:
        settings = Settings(tmux=False, ctrl_t_command="printf 'x\\ny\\n'")
        selector = FakeSelector()
        FileWidget(settings, selector).run()
        assert selector.last.lines == ["x", "y"]


class TestCdWidget:
    def test_changes_directory(self, tree: Path, settings: Settings) -> None:
        visited = []
        selector = FakeSelector(["src"])
        assert CdWidget(settings, selector, chdir=visited.append).run() == "src"
        assert visited == ["src"]
        assert selector.last.lines == ["src"]
        assert selector.last.flags == ["+m"]

    def test_cancel(self, tree: Path, settings: Settings) -> None:
        visited = []
        assert CdWidget(settings, FakeSelector(), chdir=visited.append).run() is None
        assert visited == []

    def test_vanished_directory(self, tree: Path, settings: Settings) -> None:
        assert CdWidget(settings, FakeSelector(["gone"])).run() is None


def test_listings_skip_special_mounts(tree: Path, settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("skimline.widgets.SPECIAL_MOUNTS", (str(tree / "src"),))
    selector = FakeSelector()

    FileWidget(settings, selector).run()
    assert set(selector.last.lines) == {"a file"}

    CdWidget(settings, selector, chdir=lambda path: None).run()
    assert selector.last.lines == []
