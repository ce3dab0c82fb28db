"""Safe subprocess wrappers for Git operations."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from codecanon.core.errors import CanonError

__all__ = ["GitClient", "GitError"]

logger = logging.getLogger(__name__)


class GitError(CanonError):
    def __init__(self, command: str, stderr: str, returncode: int) -> None:
        self.command = command
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(f"git {command} failed (rc={returncode}): {stderr.strip()}")


class GitClient:
    def __init__(self, repo_dir: Path | None = None) -> None:
        self.repo_dir = (repo_dir or Path.cwd()).resolve()

    def _run(self, *args: str, check: bool = True, cwd: Path | None = None) -> str:
        cmd = ["git", *args]
        workdir = cwd or self.repo_dir
        logger.debug("Running: %s (cwd=%s)", " ".join(cmd), workdir)
        try:
            result = subprocess.run(cmd, cwd=workdir, capture_output=True, text=True, timeout=30)
        except FileNotFoundError:
            raise GitError(args[0] if args else "git", "Git is not installed or not in PATH", 127)
        except subprocess.TimeoutExpired:
            raise GitError(args[0] if args else "git", "Command timed out after 30s", 124)
        if check and result.returncode != 0:
            raise GitError(args[0] if args else "git", result.stderr, result.returncode)
        return result.stdout.strip()

    @staticmethod
    def _lines(output: str) -> list[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    def is_git_repo(self) -> bool:
        try:
            self._run("rev-parse", "--is-inside-work-tree")
            return True
        except GitError:
            return False

    def toplevel(self) -> Path:
        return Path(self._run("rev-parse", "--show-toplevel"))

    def submodules(self) -> list[str]:
        output = self._run("submodule", "--quiet", "foreach", "echo $sm_path", check=False)
        return self._lines(output)

    def _changed_in(self, repo: Path) -> list[str]:
        changed = [
            *self._lines(self._run("diff", "--name-only", "HEAD", check=False, cwd=repo)),
            *self._lines(self._run("diff", "--name-only", "--cached", check=False, cwd=repo)),
            *self._lines(self._run("ls-files", "--others", "--exclude-standard", check=False, cwd=repo)),
        ]
        return list(dict.fromkeys(changed))

    def changed_files(self) -> list[Path]:
        """Modified, staged and untracked files, including those inside submodules.

        Only files that still exist are returned, as absolute paths.
        """
        if not self.is_git_repo():
            raise GitError("rev-parse", "Not a git repository", 128)
        top = self.toplevel()
        files = [top / name for name in self._changed_in(top)]
        for submodule in self.submodules():
            sub_root = top / submodule
            files.extend(sub_root / name for name in self._changed_in(sub_root))
        existing = [path for path in dict.fromkeys(files) if path.is_file()]
        logger.debug("%d changed file(s) in %s", len(existing), top)
        return existing
