"""Shared pytest fixtures for bitcache tests."""

import shutil
import subprocess
import tempfile
from pathlib import Path

import pytest

from bitcache.config import METADATA_FILENAME
from bitcache.metadata import ArtifactRecord, MetadataIndex, load_index, save_index
from bitcache.store import ArtifactMissingError, StoreConflictError, store_relative_path


def _git(*args: str, cwd: Path | None = None) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture(autouse=True)
def git_identity(tmp_path_factory, monkeypatch: pytest.MonkeyPatch) -> None:
    """Give git a committer identity and ignore the user's git config."""
    config = tmp_path_factory.mktemp("gitconfig") / "config"
    config.write_text("")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(config))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "bitcache tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@bitcache.invalid")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "bitcache tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@bitcache.invalid")


@pytest.fixture
def session_tmp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect temporary directories so tests can check they are removed."""
    tmp_dir = tmp_path / "tmp"
    tmp_dir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_dir))
    return tmp_dir


@pytest.fixture
def bare_remote(tmp_path: Path) -> str:
    """Return the path of a bare repository with one commit on `main`."""
    if shutil.which("git") is None:
        pytest.skip("git is not available")
    remote = tmp_path / "remote.git"
    _git("init", "--quiet", "--bare", "--initial-branch=main", str(remote))
    seed = tmp_path / "seed"
    _git("clone", "--quiet", str(remote), str(seed))
    _git("symbolic-ref", "HEAD", "refs/heads/main", cwd=seed)
    (seed / "README.md").write_text("bitstream cache\n")
    _git("add", "README.md", cwd=seed)
    _git("commit", "--quiet", "-m", "Initial commit", cwd=seed)
    _git("push", "--quiet", "origin", "main", cwd=seed)
    shutil.rmtree(seed)
    return str(remote)


@pytest.fixture
def read_remote_file():
    """Return a function reading a file from the `main` branch of a bare repository."""

    def read(remote: str, path: str) -> bytes:
        result = subprocess.run(
            ["git", "--git-dir", remote, "show", f"main:{path}"],
            capture_output=True,
            check=True,
        )
        return result.stdout

    return read


class FakeSession:
    """In-memory StoreSession backed by a directory, for workflow tests."""

    def __init__(self, remote, work_dir: Path) -> None:
        self.remote = remote
        self.work_dir = work_dir
        self.base = remote.revision
        self.released = False
        for name, data in remote.files.items():
            path = work_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    def read_metadata(self) -> MetadataIndex:
        return load_index(self.work_dir / METADATA_FILENAME)

    def write_metadata(self, index: MetadataIndex) -> None:
        save_index(index, self.work_dir / METADATA_FILENAME)

    def write_artifact(self, relative_path: str, data: bytes) -> None:
        path = self.work_dir / store_relative_path(relative_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def artifact_file(self, relative_path: str) -> Path:
        path = self.work_dir / store_relative_path(relative_path)
        if not path.is_file():
            raise ArtifactMissingError(f"binary file not found: {relative_path}")
        return path

    def publish(self, message: str) -> None:
        self.remote.messages.append(message)
        if self.remote.before_publish:
            hook = self.remote.before_publish.pop(0)
            hook(self.remote)
        if self.remote.always_conflict:
            self.remote.revision += 1
        if self.base != self.remote.revision:
            raise StoreConflictError(f"{self.remote.url} advanced")
        self.remote.files = {
            path.relative_to(self.work_dir).as_posix(): path.read_bytes()
            for path in self.work_dir.rglob("*")
            if path.is_file()
        }
        self.remote.revision += 1

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self.remote.released += 1
        shutil.rmtree(self.work_dir)


class FakeRemote:
    """In-memory StoreRemote with optimistic concurrency, for workflow tests."""

    url = "fake://store"

    def __init__(self, root: Path) -> None:
        self.root = root
        self.files: dict[str, bytes] = {}
        self.revision = 0
        self.acquired = 0
        self.released = 0
        self.messages: list[str] = []
        self.before_publish: list = []
        self.always_conflict = False

    def acquire(self) -> FakeSession:
        self.acquired += 1
        work_dir = self.root / f"session-{self.acquired}"
        work_dir.mkdir(parents=True)
        return FakeSession(self, work_dir)

    def session_dirs(self) -> list[Path]:
        return list(self.root.glob("session-*"))

    def index(self) -> MetadataIndex:
        return MetadataIndex.load(self.files.get(METADATA_FILENAME, b""))

    def publish_record(self, record: ArtifactRecord, data: bytes) -> None:
        """Simulate another writer successfully pushing a record."""
        index = self.index()
        index.upsert(record)
        self.files[record.binary_path] = data
        self.files[METADATA_FILENAME] = index.serialize()
        self.revision += 1


@pytest.fixture
def fake_remote(tmp_path: Path) -> FakeRemote:
    """Return an empty FakeRemote whose sessions live under tmp_path."""
    return FakeRemote(tmp_path / "sessions")
