"""One-way mirror of a flat local directory into a remote folder."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import SyncEngine
from .events import ChangeEvent, ChangeEventBridge, ChangeKind
from .ledger import DebounceLedger
from .monitor import ChangeMonitor, MonitorState
from .operations import SyncOperations
from .readiness import ReadinessPolicy, ReadinessResult, wait_for_file_ready
from .remote import DrimeRemoteStore, RemoteStore
from .scanner import DirectoryScanner, LocalFileEntry, RemoteFileEntry, RemoteFolder
from .service import MirrorService

__all__ = [
    "SyncEngine",
    "SyncOperations",
    "MirrorService",
    "ChangeMonitor",
    "MonitorState",
    "ChangeEvent",
    "ChangeEventBridge",
    "ChangeKind",
    "DebounceLedger",
    "ReadinessPolicy",
    "ReadinessResult",
    "wait_for_file_ready",
    "RemoteStore",
    "DrimeRemoteStore",
    "DirectoryScanner",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "LocalFileEntry",
    "RemoteFileEntry",
    "RemoteFolder",
]
