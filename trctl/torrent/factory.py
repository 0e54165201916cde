import logging

from ..settings import RpcData
from .client import TorrentClient
from .memory import MemoryClient, sample_torrents
from .transmission import TransmissionClient


_L = logging.getLogger(__name__)

_MOCK_DOWNLOAD_DIR = "/var/cache/torrents/dl"


def create_torrent_client(config: RpcData, *, mock: bool = False) -> TorrentClient:
    """Factory function to create torrent clients based on configuration"""
    if mock or config.type == "memory":
        _L.debug("using the in-memory torrent client")
        return MemoryClient(
            sample_torrents(_MOCK_DOWNLOAD_DIR), download_dir=_MOCK_DOWNLOAD_DIR
        )
    if config.type == "transmission":
        return TransmissionClient(config)
    raise ValueError(f"Unsupported torrent client type: {config.type}")
