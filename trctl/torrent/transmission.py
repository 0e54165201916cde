import logging

from transmission_rpc import Client, TransmissionError
from typing_extensions import override

from ..errors import TransportError
from ..settings import RpcData
from .client import (
    TORRENT_FIELDS,
    AddedTorrent,
    AddRequest,
    TorrentAction,
    TorrentClient,
    TorrentRecord,
    TorrentSession,
    record_from_fields,
)


_L = logging.getLogger(__name__)

_LOCAL_HOSTS = ("localhost", "::1")


class TransmissionClient(TorrentClient):
    """Transmission torrent client implementation"""

    def __init__(self, config: RpcData) -> None:
        self.config = config
        self._client: Client | None = None

    def _get_client(self) -> Client:
        """Get or create Transmission client connection"""
        if self._client is None:
            try:
                self._client = Client(
                    protocol=self.config.protocol,
                    host=self.config.host,
                    port=self.config.port,
                    path=self.config.path,
                    username=self.config.username,
                    password=self.config.password,
                )
            except TransmissionError as e:
                raise TransportError(f"connect to {self.config.host}: {e}") from e
        return self._client

    @property
    @override
    def is_remote(self) -> bool:
        if self.config.force_not_remote:
            return False
        host = self.config.host
        return not (host.startswith("127.") or host in _LOCAL_HOSTS)

    @override
    def get_torrents(
        self, fields: list[str] | None = None, ids: list[int | str] | None = None
    ) -> list[TorrentRecord]:
        client = self._get_client()
        try:
            torrents = client.get_torrents(
                ids=ids, arguments=fields if fields else TORRENT_FIELDS
            )
        except TransmissionError as e:
            raise TransportError(f"torrent-get: {e}") from e
        return [record_from_fields(t.fields) for t in torrents]

    @override
    def add_torrent(self, request: AddRequest) -> AddedTorrent:
        client = self._get_client()
        torrent = request.metainfo if request.metainfo is not None else request.filename
        if torrent is None:
            raise ValueError("add request without metainfo or filename")
        try:
            # torrent-add reports duplicates, but the library folds them into
            # the same return value
            existing = client.get_torrents(
                ids=[request.info_hash], arguments=["id", "hashString", "name"]
            )
            added = client.add_torrent(
                torrent, download_dir=request.download_dir, paused=request.paused
            )
        except TransmissionError as e:
            raise TransportError(f"torrent-add: {e}") from e
        fields = added.fields
        _L.debug(f"torrent-add returned {fields}")
        return AddedTorrent(
            id=fields.get("id"),
            hash_string=fields.get("hashString"),
            name=fields.get("name"),
            duplicate=bool(existing),
        )

    @override
    def remove_torrents(self, ids: list[str], delete_data: bool) -> None:
        client = self._get_client()
        try:
            client.remove_torrent(ids, delete_data=delete_data)
        except TransmissionError as e:
            raise TransportError(f"torrent-remove: {e}") from e
        _L.info(f"removed torrents {ids}")

    @override
    def torrent_action(self, ids: list[str], action: TorrentAction) -> None:
        client = self._get_client()
        try:
            match action:
                case TorrentAction.START:
                    client.start_torrent(ids)
                case TorrentAction.START_NOW:
                    client.start_torrent(ids, bypass_queue=True)
                case TorrentAction.STOP:
                    client.stop_torrent(ids)
                case TorrentAction.VERIFY:
                    client.verify_torrent(ids)
                case TorrentAction.REANNOUNCE:
                    client.reannounce_torrent(ids)
        except TransmissionError as e:
            raise TransportError(f"torrent-{action.value}: {e}") from e

    @override
    def set_location(self, ids: list[str], location: str, move: bool) -> None:
        client = self._get_client()
        try:
            if move:
                client.move_torrent_data(ids, location)
            else:
                client.locate_torrent_data(ids, location)
        except TransmissionError as e:
            raise TransportError(f"torrent-set-location: {e}") from e

    @override
    def free_space(self, path: str) -> int:
        client = self._get_client()
        try:
            size = client.free_space(path)
        except TransmissionError as e:
            raise TransportError(f"free-space {path}: {e}") from e
        if size is None:
            raise TransportError(f"could not query free space for: {path}")
        return size

    @override
    def get_session(self) -> TorrentSession:
        client = self._get_client()
        try:
            session = client.get_session()
        except TransmissionError as e:
            raise TransportError(f"session-get: {e}") from e
        return TorrentSession(download_dir=session.download_dir)
