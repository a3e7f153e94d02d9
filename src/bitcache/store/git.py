"""Module containing the git-backed store implementation."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from tempfile import TemporaryDirectory

from ..config import (
    DEFAULT_COMMITTER_EMAIL,
    DEFAULT_COMMITTER_NAME,
    DEFAULT_GIT_TIMEOUT,
    METADATA_FILENAME,
)
from ..metadata import MetadataIndex, load_index, save_index
from .session import (
    ArtifactMissingError,
    RemoteError,
    StoreConflictError,
    store_relative_path,
)

log = logging.getLogger("store/git")

# Reasons for which the remote refuses to update the ref because it moved
# while we were pushing (e.g., two receive-pack processes racing)
_REMOTE_RACE_REASONS = ("cannot lock ref", "failed to update ref", "incorrect old value")


@dataclass(frozen=True, kw_only=True)
class GitRemote:
    """
    Remote store reachable through the `git` command line tool.

    This class implements the store.StoreRemote protocol.

    Attributes:
        url: the URL of the remote repository.
        ssh_key: optional private key passed to ssh unmodified.
        timeout: seconds after which a git invocation is aborted.
        git: name or path of the git executable.
    """

    url: str
    ssh_key: str | None = None
    timeout: float = DEFAULT_GIT_TIMEOUT
    git: str = "git"

    def acquire(self) -> GitStoreSession:
        """
        Clone the remote default branch into a fresh temporary directory.

        Raises:
            RemoteError: if the remote is unreachable, the credentials are
                rejected, or the clone does not complete within the timeout.
        """
        tmp_dir = TemporaryDirectory(prefix="bitcache-")
        work_tree = Path(tmp_dir.name) / "repo"
        try:
            log.info("cloning %s... start", self.url)
            result = self.run(["clone", "--quiet", "--", self.url, str(work_tree)], cwd=None)
            if result.returncode != 0:
                raise RemoteError(f"failed to clone {self.url}: {_stderr(result)}")
            log.info("cloning %s... ok", self.url)
        except BaseException:
            tmp_dir.cleanup()
            raise
        return GitStoreSession(remote=self, tmp_dir=tmp_dir, work_tree=work_tree)

    def environ(self) -> dict[str, str]:
        """Return the environment for running git against this remote."""
        env = os.environ.copy()
        # Fail instead of blocking on an interactive credentials prompt
        env["GIT_TERMINAL_PROMPT"] = "0"
        if self.ssh_key:
            env["GIT_SSH_COMMAND"] = f"ssh -i {shlex.quote(self.ssh_key)} -o IdentitiesOnly=yes"
        return env

    def run(self, args: list[str], *, cwd: Path | None) -> subprocess.CompletedProcess[str]:
        """
        Run git with the given arguments and return the completed process.

        Raises:
            RemoteError: if git cannot be executed or exceeds the timeout.
        """
        argv = [self.git, *args]
        log.debug("running %s", argv)
        try:
            return subprocess.run(
                argv,
                cwd=cwd,
                env=self.environ(),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise RemoteError(f"cannot execute {self.git}: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise RemoteError(
                f"git {args[0]} for {self.url} timed out after {self.timeout:g} seconds"
            ) from exc


class GitStoreSession:
    """
    Working copy of a GitRemote owned by a single operation.

    This class implements the store.StoreSession protocol.
    """

    def __init__(
        self,
        *,
        remote: GitRemote,
        tmp_dir: TemporaryDirectory,
        work_tree: Path,
    ) -> None:
        self.remote = remote
        self.work_tree = work_tree
        self._tmp_dir = tmp_dir
        self._released = False
        # Store paths we wrote, staged even when a .gitignore matches them
        self._written: set[str] = set()

    def __enter__(self) -> GitStoreSession:
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        self.release()
        return False

    def metadata_path(self) -> Path:
        """Returns the path to the metadata document."""
        return self.work_tree / METADATA_FILENAME

    def read_metadata(self) -> MetadataIndex:
        return load_index(self.metadata_path())

    def write_metadata(self, index: MetadataIndex) -> None:
        save_index(index, self.metadata_path())
        self._written.add(METADATA_FILENAME)

    def write_artifact(self, relative_path: str, data: bytes) -> None:
        path = store_relative_path(relative_path)
        dest = self.work_tree / path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(data)
        self._written.add(path.as_posix())

    def artifact_file(self, relative_path: str) -> Path:
        try:
            path = self.work_tree / store_relative_path(relative_path)
        except ValueError as exc:
            raise ArtifactMissingError(
                f"invalid binary path in metadata: {relative_path}: {exc}"
            ) from exc
        if not path.is_file():
            raise ArtifactMissingError(
                f"binary file not found in {self.remote.url}: {relative_path}"
            )
        return path

    def publish(self, message: str) -> None:
        """
        Stage every change, commit, and fast-forward the remote branch.

        Raises:
            StoreConflictError: if the remote branch advanced since we cloned.
            RemoteError: on any other git failure.
        """
        self._git(["add", "--all"], what="stage changes for")
        if self._written:
            self._git(
                ["add", "--force", "--", *sorted(self._written)],
                what="stage written files for",
            )
        status = self._git(["status", "--porcelain"], what="inspect changes for")
        if not status.stdout.strip():
            log.info("nothing to commit for %s", self.remote.url)
            return

        self._git(
            [*self._identity_config(), "commit", "--quiet", "-m", message],
            what="commit changes for",
        )
        branch = self._git(
            ["symbolic-ref", "--quiet", "--short", "HEAD"],
            what="determine the branch of",
        ).stdout.strip()

        log.info("pushing %s to %s... start", branch, self.remote.url)
        result = self.remote.run(
            ["push", "--porcelain", "origin", f"HEAD:refs/heads/{branch}"],
            cwd=self.work_tree,
        )
        if result.returncode != 0:
            if _is_conflict(result.stdout):
                log.debug("pushing %s to %s... conflict", branch, self.remote.url)
                raise StoreConflictError(f"{self.remote.url} advanced while publishing to {branch}")
            raise RemoteError(f"failed to push to {self.remote.url}: {_stderr(result)}")
        log.info("pushing %s to %s... ok", branch, self.remote.url)

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        log.debug("removing %s", self._tmp_dir.name)
        self._tmp_dir.cleanup()

    def _identity_config(self) -> list[str]:
        """Return `-c` options providing a committer identity when git has none."""
        for ident in ("GIT_AUTHOR_IDENT", "GIT_COMMITTER_IDENT"):
            if self.remote.run(["var", ident], cwd=self.work_tree).returncode != 0:
                log.debug("no git identity configured: committing as %s", DEFAULT_COMMITTER_NAME)
                return [
                    "-c",
                    f"user.name={DEFAULT_COMMITTER_NAME}",
                    "-c",
                    f"user.email={DEFAULT_COMMITTER_EMAIL}",
                ]
        return []

    def _git(self, args: list[str], *, what: str) -> subprocess.CompletedProcess[str]:
        result = self.remote.run(args, cwd=self.work_tree)
        if result.returncode != 0:
            raise RemoteError(f"failed to {what} {self.remote.url}: {_stderr(result)}")
        return result


def _is_conflict(porcelain: str) -> bool:
    """Tell whether `git push --porcelain` output reports a moved remote ref."""
    for line in porcelain.splitlines():
        fields = line.split("\t")
        if len(fields) < 3 or fields[0] != "!":
            continue
        summary = fields[2]
        if summary.startswith("[rejected]"):
            return True
        if summary.startswith("[remote rejected]") and any(
            reason in summary for reason in _REMOTE_RACE_REASONS
        ):
            return True
    return False


def _stderr(result: subprocess.CompletedProcess[str]) -> str:
    return result.stderr.strip() or f"git exited with status {result.returncode}"
