"""Shared fixtures: an in-memory remote store and helpers for local files."""

import dataclasses
import os
from pathlib import Path
from typing import Optional

import pytest

from drimesync.exceptions import DrimeUploadError, RemoteFolderNotFoundError
from drimesync.output import OutputFormatter
from drimesync.sync.readiness import ReadinessPolicy
from drimesync.sync.scanner import RemoteFileEntry, RemoteFolder


class FakeRemoteStore:
    """RemoteStore keeping entries in memory and recording every call."""

    def __init__(self, folders: Optional[list[RemoteFolder]] = None):
        self.folders = list(folders or [RemoteFolder(name="Sync", id=1)])
        self.files: list[RemoteFileEntry] = []
        self.reachable = True
        self.fail_names: set[str] = set()
        self.list_error: Optional[Exception] = None
        self.calls: list[tuple[str, str]] = []
        self._next_id = 1000

    def add(
        self, name: str, modified_at: Optional[int], folder_id: int = 1
    ) -> RemoteFileEntry:
        self._next_id += 1
        entry = RemoteFileEntry(
            name=name,
            remote_id=self._next_id,
            modified_at=modified_at,
            parent_folder_id=folder_id,
        )
        self.files.append(entry)
        return entry

    def names(self, folder_id: int = 1) -> list[str]:
        return sorted(f.name for f in self.files if f.parent_folder_id == folder_id)

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] in ("upload", "delete")]

    def resolve_folder(self, name: str) -> RemoteFolder:
        for folder in self.folders:
            if folder.name == name:
                return folder
        raise RemoteFolderNotFoundError(name)

    def check_folder_reachable(self, folder_id: int) -> bool:
        return self.reachable

    def list_entries(self, folder_id: int) -> list[RemoteFileEntry]:
        self.calls.append(("list", str(folder_id)))
        if self.list_error is not None:
            raise self.list_error
        return [f for f in self.files if f.parent_folder_id == folder_id]

    def upload(
        self, folder_id: int, name: str, local_path: Path, modified_at: int
    ) -> RemoteFileEntry:
        self.calls.append(("upload", name))
        if name in self.fail_names:
            raise DrimeUploadError(f"Upload failed for {name}")
        for i, existing in enumerate(self.files):
            if existing.parent_folder_id == folder_id and existing.name == name:
                self.files[i] = dataclasses.replace(existing, modified_at=modified_at)
                return self.files[i]
        return self.add(name, modified_at, folder_id)

    def delete_by_name(self, folder_id: int, name: str) -> int:
        self.calls.append(("delete", name))
        if name in self.fail_names:
            raise DrimeUploadError(f"Delete failed for {name}")
        before = len(self.files)
        self.files = [
            f
            for f in self.files
            if not (f.parent_folder_id == folder_id and f.name == name)
        ]
        return before - len(self.files)


def write_file(
    directory: Path, name: str, modified_at: int, content: str = "x"
) -> Path:
    """Create a file and set its modification time in milliseconds."""
    path = directory / name
    path.write_text(content)
    ns = modified_at * 1_000_000
    os.utime(path, ns=(ns, ns))
    return path


@pytest.fixture
def fake_store():
    """Create an in-memory remote store with one folder named 'Sync'."""
    return FakeRemoteStore()


@pytest.fixture
def sync_folder(fake_store):
    return fake_store.folders[0]


@pytest.fixture
def make_file():
    """Return the write_file helper."""
    return write_file


@pytest.fixture
def quiet_output():
    """Create an output formatter that prints nothing."""
    return OutputFormatter(quiet=True)


@pytest.fixture
def fast_policy():
    """Readiness policy that never sleeps."""
    return ReadinessPolicy(max_attempts=1, delay=0)
