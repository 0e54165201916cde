from abc import ABCMeta, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum


class TorrentStatus(IntEnum):
    """Transmission status codes"""

    STOPPED = 0
    QUEUED_TO_VERIFY = 1
    VERIFYING = 2
    QUEUED_TO_DOWNLOAD = 3
    DOWNLOADING = 4
    QUEUED_TO_SEED = 5
    SEEDING = 6


class TorrentError(IntEnum):
    OK = 0
    TRACKER_WARNING = 1
    TRACKER_ERROR = 2
    LOCAL_ERROR = 3


class TorrentAction(Enum):
    START = "start"
    START_NOW = "start-now"
    STOP = "stop"
    VERIFY = "verify"
    REANNOUNCE = "reannounce"


@dataclass(frozen=True)
class TorrentFile:
    """Represents a file within a torrent"""

    name: str
    length: int
    bytes_completed: int


@dataclass(frozen=True)
class Tracker:
    announce: str


@dataclass(frozen=True)
class TorrentRecord:
    """
    Snapshot of a torrent as reported by the daemon.

    Every field is optional, None means the daemon did not report it.
    """

    id: int | None = None
    hash_string: str | None = None
    name: str | None = None
    status: TorrentStatus | None = None
    is_finished: bool | None = None
    left_until_done: int | None = None
    size_when_done: int | None = None
    error: TorrentError | None = None
    error_string: str | None = None
    download_dir: str | None = None
    rate_upload: int | None = None
    rate_download: int | None = None
    upload_ratio: float | None = None
    percent_done: float | None = None
    recheck_progress: float | None = None
    eta: int | None = None
    peers_getting_from_us: int | None = None
    peers_sending_to_us: int | None = None
    files: tuple[TorrentFile, ...] | None = None
    wanted: tuple[bool, ...] | None = None
    priorities: tuple[int, ...] | None = None
    trackers: tuple[Tracker, ...] | None = None
    torrent_file: str | None = None


@dataclass(frozen=True)
class TorrentSession:
    download_dir: str


@dataclass(frozen=True)
class AddRequest:
    info_hash: str
    download_dir: str
    paused: bool
    metainfo: bytes | None = None
    filename: str | None = None
    name: str | None = None


@dataclass(frozen=True)
class AddedTorrent:
    id: int | None
    hash_string: str | None
    name: str | None
    duplicate: bool


# Fields requested from the daemon unless a caller asks for fewer.
TORRENT_FIELDS = [
    "id",
    "hashString",
    "name",
    "status",
    "isFinished",
    "leftUntilDone",
    "sizeWhenDone",
    "error",
    "errorString",
    "downloadDir",
    "rateUpload",
    "rateDownload",
    "uploadRatio",
    "percentDone",
    "recheckProgress",
    "eta",
    "peersGettingFromUs",
    "peersSendingToUs",
    "files",
    "wanted",
    "priorities",
    "trackers",
    "torrentFile",
]


class TorrentClient(metaclass=ABCMeta):
    """Capabilities of a torrent daemon used by the rest of the package"""

    @property
    @abstractmethod
    def is_remote(self) -> bool:
        pass

    @abstractmethod
    def get_torrents(
        self, fields: list[str] | None = None, ids: list[int | str] | None = None
    ) -> list[TorrentRecord]:
        """Get torrents, all of them when ids is None"""
        pass

    @abstractmethod
    def add_torrent(self, request: AddRequest) -> AddedTorrent:
        pass

    @abstractmethod
    def remove_torrents(self, ids: list[str], delete_data: bool) -> None:
        pass

    @abstractmethod
    def torrent_action(self, ids: list[str], action: TorrentAction) -> None:
        pass

    @abstractmethod
    def set_location(self, ids: list[str], location: str, move: bool) -> None:
        pass

    @abstractmethod
    def free_space(self, path: str) -> int:
        """Get free space in bytes for the given path"""
        pass

    @abstractmethod
    def get_session(self) -> TorrentSession:
        pass


def record_from_fields(fields: dict) -> TorrentRecord:
    """Build a record from Transmission's camelCase torrent fields."""
    files = fields.get("files")
    trackers = fields.get("trackers")
    wanted = fields.get("wanted")
    priorities = fields.get("priorities")
    status = fields.get("status")
    error = fields.get("error")
    return TorrentRecord(
        id=fields.get("id"),
        hash_string=fields.get("hashString"),
        name=fields.get("name"),
        status=None if status is None else TorrentStatus(status),
        is_finished=fields.get("isFinished"),
        left_until_done=fields.get("leftUntilDone"),
        size_when_done=fields.get("sizeWhenDone"),
        error=None if error is None else TorrentError(error),
        error_string=fields.get("errorString"),
        download_dir=fields.get("downloadDir"),
        rate_upload=fields.get("rateUpload"),
        rate_download=fields.get("rateDownload"),
        upload_ratio=fields.get("uploadRatio"),
        percent_done=fields.get("percentDone"),
        recheck_progress=fields.get("recheckProgress"),
        eta=fields.get("eta"),
        peers_getting_from_us=fields.get("peersGettingFromUs"),
        peers_sending_to_us=fields.get("peersSendingToUs"),
        files=None
        if files is None
        else tuple(
            TorrentFile(
                name=_["name"],
                length=_["length"],
                bytes_completed=_["bytesCompleted"],
            )
            for _ in files
        ),
        wanted=None if wanted is None else tuple(bool(_) for _ in wanted),
        priorities=None if priorities is None else tuple(priorities),
        trackers=None
        if trackers is None
        else tuple(Tracker(announce=_["announce"]) for _ in trackers),
        torrent_file=fields.get("torrentFile"),
    )
