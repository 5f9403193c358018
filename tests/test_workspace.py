"""Tests for gifsmith.workspace scoped temp directories."""
from pathlib import Path

import pytest

from gifsmith.workspace import TempWorkspace, acquire, release


@pytest.fixture
def temp_root(tmp_path, monkeypatch) -> Path:
    root = tmp_path / "tmp"
    monkeypatch.setenv("GIFSMITH_TMPDIR", str(root))
    return root


class TestAcquireRelease:
    def test_acquire_creates_prefixed_dir_under_root(self, temp_root):
        path = acquire("gifsmith-thumbs-")
        assert path.is_dir()
        assert path.parent == temp_root.resolve()
        assert path.name.startswith("gifsmith-thumbs-")

    def test_acquire_is_unique(self, temp_root):
        assert acquire() != acquire()

    def test_release_removes_contents(self, temp_root):
        path = acquire()
        (path / "nested").mkdir()
        (path / "nested" / "frame.jpg").write_bytes(b"jpeg")
        release(path)
        assert not path.exists()

    def test_release_missing_dir_is_not_an_error(self, temp_root):
        release(temp_root / "never-created")


class TestTempWorkspace:
    def test_removed_on_normal_exit(self, temp_root):
        with TempWorkspace() as workspace:
            path = workspace.path
            (path / "frame.jpg").write_bytes(b"jpeg")
        assert not path.exists()
        assert workspace.path is None

    def test_removed_on_exception(self, temp_root):
        with pytest.raises(RuntimeError):
            with TempWorkspace("gifsmith-export-") as workspace:
                path = workspace.path
                raise RuntimeError("boom")
        assert not path.exists()

    def test_default_root_is_system_temp(self, monkeypatch):
        import tempfile

        monkeypatch.delenv("GIFSMITH_TMPDIR", raising=False)
        with TempWorkspace() as workspace:
            assert workspace.path.parent == Path(tempfile.gettempdir())
