"""Tests for the sync engine."""

import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from drimesync.exceptions import (
    DrimeNetworkError,
    LocalDirectoryError,
    RemoteFolderUnreachableError,
)
from drimesync.output import OutputFormatter
from drimesync.sync import SyncEngine
from drimesync.sync.remote import RemoteStore
from drimesync.sync.scanner import DirectoryScanner


class TestSyncEngine:
    """Test SyncEngine functionality."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    @pytest.fixture
    def engine(self, fake_store, quiet_output, fast_policy):
        """Create a sync engine instance."""
        return SyncEngine(fake_store, quiet_output, readiness_policy=fast_policy)

    def test_create_sync_engine(self, fake_store, quiet_output):
        """Test creating a sync engine."""
        engine = SyncEngine(fake_store, quiet_output)
        assert engine.store is fake_store
        assert engine.output is quiet_output
        assert engine.comparator is not None

    def test_invalid_local_path(self, engine, fake_store, sync_folder, temp_dir):
        """Test reconcile with non-existent local path."""
        with pytest.raises(LocalDirectoryError, match="does not exist"):
            engine.reconcile(temp_dir / "nonexistent", sync_folder)
        assert fake_store.calls == []

    def test_local_path_not_directory(
        self, engine, fake_store, sync_folder, temp_dir
    ):
        """Test reconcile with a local path that is a file, not a directory."""
        test_file = temp_dir / "test.txt"
        test_file.write_text("test")

        with pytest.raises(LocalDirectoryError, match="not a directory"):
            engine.reconcile(test_file, sync_folder)
        assert fake_store.calls == []

    def test_unreachable_folder(self, engine, fake_store, sync_folder, temp_dir):
        """Test that an unreachable folder fails before any mutation."""
        fake_store.reachable = False
        fake_store.add("orphan.txt", 1)

        with pytest.raises(RemoteFolderUnreachableError, match="Sync"):
            engine.reconcile(temp_dir, sync_folder)
        assert fake_store.mutations == []

    def test_empty_dirs(self, engine, fake_store, sync_folder, temp_dir):
        """Test reconciling an empty directory against an empty folder."""
        stats = engine.reconcile(temp_dir, sync_folder)

        assert stats == {"uploads": 0, "deletes_remote": 0, "skips": 0, "errors": 0}
        assert fake_store.mutations == []

    def test_scenario_upload_update_delete(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """Local {a, b(newer)} against remote {b(older), c} ends as {a, b}."""
        make_file(temp_dir, "a.txt", 1_000)
        make_file(temp_dir, "b.txt", 2_000)
        fake_store.add("b.txt", 1_500)
        fake_store.add("c.txt", 1_000)

        stats = engine.reconcile(temp_dir, sync_folder)

        assert stats["uploads"] == 2
        assert stats["deletes_remote"] == 1
        assert stats["errors"] == 0
        assert fake_store.names() == ["a.txt", "b.txt"]
        assert sorted(fake_store.mutations) == [
            ("delete", "c.txt"),
            ("upload", "a.txt"),
            ("upload", "b.txt"),
        ]

    def test_second_pass_is_noop(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """Running twice with no change issues no operation the second time."""
        make_file(temp_dir, "a.txt", 1_000)
        make_file(temp_dir, "b.txt", 2_000)
        fake_store.add("b.txt", 1_500)
        fake_store.add("c.txt", 1_000)

        engine.reconcile(temp_dir, sync_folder)
        fake_store.calls.clear()
        stats = engine.reconcile(temp_dir, sync_folder)

        assert fake_store.mutations == []
        assert stats["uploads"] == 0
        assert stats["deletes_remote"] == 0
        assert stats["skips"] == 2

    def test_upload_only_when_strictly_newer(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """Equal and older local timestamps do not upload."""
        make_file(temp_dir, "newer.txt", 2_001)
        make_file(temp_dir, "equal.txt", 2_000)
        make_file(temp_dir, "older.txt", 1_999)
        for name in ("newer.txt", "equal.txt", "older.txt"):
            fake_store.add(name, 2_000)

        stats = engine.reconcile(temp_dir, sync_folder)

        assert fake_store.mutations == [("upload", "newer.txt")]
        assert stats["skips"] == 2

    def test_unknown_remote_timestamp_always_uploads(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """A remote entry without a timestamp is overwritten."""
        make_file(temp_dir, "a.txt", 1)
        fake_store.add("a.txt", None)

        engine.reconcile(temp_dir, sync_folder)

        assert fake_store.mutations == [("upload", "a.txt")]

    def test_orphan_duplicates_deleted_once(
        self, engine, fake_store, sync_folder, temp_dir
    ):
        """Every duplicate of an orphan name is gone after one delete call."""
        fake_store.add("dup.txt", 1)
        fake_store.add("dup.txt", 2)

        stats = engine.reconcile(temp_dir, sync_folder)

        assert fake_store.mutations == [("delete", "dup.txt")]
        assert fake_store.names() == []
        assert stats["deletes_remote"] == 1

    def test_partial_failure_isolated(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """A failing upload is counted and the rest of the pass proceeds."""
        make_file(temp_dir, "a.txt", 1)
        make_file(temp_dir, "b.txt", 1)
        make_file(temp_dir, "c.txt", 1)
        fake_store.add("orphan.txt", 1)
        fake_store.fail_names = {"b.txt"}

        stats = engine.reconcile(temp_dir, sync_folder)

        assert stats["errors"] == 1
        assert stats["uploads"] == 2
        assert stats["deletes_remote"] == 1
        assert fake_store.names() == ["a.txt", "c.txt"]

    def test_listing_failure_aborts_without_mutation(
        self, fake_store, sync_folder, temp_dir, make_file, fast_policy
    ):
        """A failed remote listing counts one error and mutates nothing."""
        make_file(temp_dir, "a.txt", 1)
        fake_store.list_error = DrimeNetworkError("Network error: timeout")
        output = Mock(spec=OutputFormatter)
        output.quiet = True

        engine = SyncEngine(fake_store, output, readiness_policy=fast_policy)
        stats = engine.reconcile(temp_dir, sync_folder)

        assert stats["errors"] == 1
        assert fake_store.mutations == []
        output.error.assert_called_once()

    def test_dry_run(self, engine, fake_store, sync_folder, temp_dir, make_file):
        """Test that a dry run reports the plan without mutating."""
        make_file(temp_dir, "a.txt", 1)
        fake_store.add("c.txt", 1)

        stats = engine.reconcile(temp_dir, sync_folder, dry_run=True)

        assert stats["uploads"] == 1
        assert stats["deletes_remote"] == 1
        assert fake_store.mutations == []

    def test_subdirectories_ignored(
        self, engine, fake_store, sync_folder, temp_dir, make_file
    ):
        """Only files directly inside the directory are mirrored."""
        make_file(temp_dir, "top.txt", 1)
        nested = temp_dir / "nested"
        nested.mkdir()
        make_file(nested, "deep.txt", 1)

        engine.reconcile(temp_dir, sync_folder)

        assert fake_store.mutations == [("upload", "top.txt")]

    def test_file_vanished_before_upload_is_skipped(
        self, fake_store, sync_folder, temp_dir, make_file, quiet_output
    ):
        """A file removed between scan and upload is skipped, not failed."""
        make_file(temp_dir, "gone.txt", 1)
        store = Mock(spec=RemoteStore, wraps=fake_store)
        engine = SyncEngine(store, quiet_output)

        scanned = engine.scanner.scan_local(temp_dir)
        (temp_dir / "gone.txt").unlink()
        engine.scanner = Mock(spec=DirectoryScanner)
        engine.scanner.scan_local.return_value = scanned

        stats = engine.reconcile(temp_dir, sync_folder)

        store.upload.assert_not_called()
        assert stats["skips"] == 1
        assert stats["errors"] == 0
