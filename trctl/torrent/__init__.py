"""
Torrent daemon access.

This package provides:
- Abstract torrent client interface and the records it returns
- Transmission client implementation
- In-memory client for tests and dry runs
"""

from .client import (
    AddedTorrent,
    AddRequest,
    TorrentAction,
    TorrentClient,
    TorrentError,
    TorrentFile,
    TorrentRecord,
    TorrentSession,
    TorrentStatus,
    Tracker,
)
from .factory import create_torrent_client
from .memory import MemoryClient, sample_torrents
from .transmission import TransmissionClient


__all__ = [
    # Core interfaces and models
    "AddedTorrent",
    "AddRequest",
    "TorrentAction",
    "TorrentClient",
    "TorrentError",
    "TorrentFile",
    "TorrentRecord",
    "TorrentSession",
    "TorrentStatus",
    "Tracker",
    # Client implementations
    "MemoryClient",
    "TransmissionClient",
    # Factory functions
    "create_torrent_client",
    "sample_torrents",
]
