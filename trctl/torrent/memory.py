import logging
from dataclasses import replace

from typing_extensions import override

from ..errors import TransportError
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
)


_L = logging.getLogger(__name__)

_ACTION_STATUS = {
    TorrentAction.START: TorrentStatus.QUEUED_TO_DOWNLOAD,
    TorrentAction.START_NOW: TorrentStatus.DOWNLOADING,
    TorrentAction.STOP: TorrentStatus.STOPPED,
    TorrentAction.VERIFY: TorrentStatus.QUEUED_TO_VERIFY,
}


class MemoryClient(TorrentClient):
    """
    Keeps torrents in a list and answers like a daemon would.

    ``fail_rpc`` makes every call raise TransportError.
    """

    def __init__(
        self,
        torrents: list[TorrentRecord] | None = None,
        *,
        download_dir: str = "/var/cache/torrents/dl",
        free_space: int = 50 * 1024 * 1024 * 1024,
        remote: bool = False,
    ) -> None:
        self.torrents = list(torrents) if torrents else []
        self.download_dir = download_dir
        self.free_space_bytes = free_space
        self.remote = remote
        self.fail_rpc = False
        self.added: list[AddRequest] = []
        self.removed: list[tuple[list[str], bool]] = []
        self.actions: list[tuple[list[str], TorrentAction]] = []
        self.locations: list[tuple[list[str], str, bool]] = []

    @property
    @override
    def is_remote(self) -> bool:
        return self.remote

    def _check(self, operation: str) -> None:
        if self.fail_rpc:
            raise TransportError(f"{operation}: rpc request failed")

    @override
    def get_torrents(
        self, fields: list[str] | None = None, ids: list[int | str] | None = None
    ) -> list[TorrentRecord]:
        self._check("torrent-get")
        if ids is None:
            return list(self.torrents)
        return [t for t in self.torrents if t.id in ids or t.hash_string in ids]

    @override
    def add_torrent(self, request: AddRequest) -> AddedTorrent:
        self._check("torrent-add")
        self.added.append(request)
        for torrent in self.torrents:
            if torrent.hash_string == request.info_hash:
                return AddedTorrent(
                    id=torrent.id,
                    hash_string=torrent.hash_string,
                    name=torrent.name,
                    duplicate=True,
                )

        next_id = max((t.id or 0 for t in self.torrents), default=0) + 1
        name = request.name or request.info_hash
        torrent = TorrentRecord(
            id=next_id,
            hash_string=request.info_hash,
            name=name,
            status=TorrentStatus.STOPPED
            if request.paused
            else TorrentStatus.DOWNLOADING,
            is_finished=False,
            download_dir=request.download_dir,
            error=TorrentError.OK,
            error_string="",
            files=(),
            wanted=(),
            priorities=(),
            trackers=(),
        )
        self.torrents.append(torrent)
        _L.debug(f"memory add {next_id}: {request.info_hash}")
        return AddedTorrent(
            id=next_id, hash_string=request.info_hash, name=name, duplicate=False
        )

    @override
    def remove_torrents(self, ids: list[str], delete_data: bool) -> None:
        self._check("torrent-remove")
        self.removed.append((list(ids), delete_data))
        self.torrents = [t for t in self.torrents if t.hash_string not in ids]

    @override
    def torrent_action(self, ids: list[str], action: TorrentAction) -> None:
        self._check(f"torrent-{action.value}")
        self.actions.append((list(ids), action))
        status = _ACTION_STATUS.get(action)
        if status is None:
            return
        self.torrents = [
            replace(t, status=status) if t.hash_string in ids else t
            for t in self.torrents
        ]

    @override
    def set_location(self, ids: list[str], location: str, move: bool) -> None:
        self._check("torrent-set-location")
        self.locations.append((list(ids), location, move))
        self.torrents = [
            replace(t, download_dir=location) if t.hash_string in ids else t
            for t in self.torrents
        ]

    @override
    def free_space(self, path: str) -> int:
        self._check("free-space")
        return self.free_space_bytes

    @override
    def get_session(self) -> TorrentSession:
        self._check("session-get")
        return TorrentSession(download_dir=self.download_dir)


def sample_torrents(download_dir: str) -> list[TorrentRecord]:
    """A few finished torrents for trying commands without a daemon."""
    hash_string = "abed48adeb5e396f54a7089cbe6c1f2bc1b0dbc8"
    size = 2541190084

    def _make(id_: int, name: str, **kwargs) -> TorrentRecord:
        fields = dict(
            id=id_,
            hash_string=f"{hash_string[:-1]}{id_}",
            name=name,
            status=TorrentStatus.DOWNLOADING,
            is_finished=False,
            left_until_done=0,
            size_when_done=size,
            error=TorrentError.OK,
            error_string="",
            download_dir=f"{download_dir}/{hash_string[:-1]}{id_}",
            rate_upload=0,
            rate_download=0,
            upload_ratio=0.8031,
            percent_done=1.0,
            recheck_progress=0.0,
            eta=-2,
            peers_getting_from_us=0,
            peers_sending_to_us=0,
            files=(TorrentFile(name=name, length=size, bytes_completed=size),),
            wanted=(True,),
            priorities=(0,),
            trackers=(),
        )
        fields.update(kwargs)
        return TorrentRecord(**fields)

    return [
        _make(1, "testing.pdf"),
        _make(
            2,
            "testing2.pdf",
            error=TorrentError.LOCAL_ERROR,
            error_string="error!!!",
        ),
        _make(3, "testing3.pdf"),
    ]
