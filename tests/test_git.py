"""Tests for changed-file discovery (git commands are faked)."""
from __future__ import annotations
from pathlib import Path
import pytest
from codecanon.git.git_utils import GitClient, GitError


def _fake_git(root: Path, inside_repo: bool = True):
    outputs = {
        (root, "diff", "HEAD"): "a.py\nmissing.py",
        (root, "diff", "--cached"): "a.py",
        (root, "ls-files", "--others"): "new.vue",
        (root / "lib", "diff", "HEAD"): "x.py",
    }

    def run(self, *args: str, check: bool = True, cwd: Path | None = None) -> str:
        if args[0] == "rev-parse":
            if not inside_repo:
                raise GitError("rev-parse", "fatal: not a git repository", 128)
            return "true" if args[1] == "--is-inside-work-tree" else str(root)
        if args[0] == "submodule":
            return "lib\n"
        key = (cwd, args[0], args[2] if args[0] == "diff" and args[1] == "--name-only" else args[1])
        return outputs.get(key, "")

    return run


class TestGitClient:
    def test_changed_files_include_submodules(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "lib").mkdir()
        for name in ("a.py", "new.vue", "lib/x.py"):
            (tmp_path / name).write_text("x")
        monkeypatch.setattr(GitClient, "_run", _fake_git(tmp_path))
        assert GitClient(tmp_path).changed_files() == [tmp_path / "a.py", tmp_path / "new.vue", tmp_path / "lib" / "x.py"]

    def test_not_a_repository(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(GitClient, "_run", _fake_git(tmp_path, inside_repo=False))
        client = GitClient(tmp_path)
        assert not client.is_git_repo()
        with pytest.raises(GitError):
            client.changed_files()

    def test_error_message(self) -> None:
        err = GitError("diff", "boom\n", 1)
        assert str(err) == "git diff failed (rc=1): boom" and err.returncode == 1
