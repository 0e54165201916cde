import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from .errors import NoMatches
from .lib import is_rooted_under
from .torrent.client import TorrentError, TorrentRecord, TorrentStatus


_L = logging.getLogger(__name__)


class SortKey(Enum):
    ID = "id"
    NAME = "name"
    URATE = "urate"
    DRATE = "drate"
    SIZE = "size"


@dataclass(frozen=True)
class QuerySpec:
    patterns: tuple[str, ...] = ()
    trackers: tuple[str, ...] = ()
    status: tuple[TorrentStatus, ...] = ()
    ids: tuple[int, ...] = ()
    hashes: tuple[str, ...] = ()
    use_case: bool = False
    exact: bool = False
    files: bool = False
    match_all: bool = False
    finished: bool | None = None
    error: bool = False
    complete: bool = False
    incomplete: bool = False
    move_aborted: bool = False
    moved: bool = False
    cleanable: bool = False
    sort: SortKey = SortKey.ID
    reverse: bool = False

    @property
    def rpc_ids(self) -> list[int | str] | None:
        """Ids and hashes for the daemon request, None selects everything"""
        if not self.ids and not self.hashes:
            return None
        rv: list[int | str] = list(self.ids)
        rv.extend(self.hashes)
        return rv


def _compile(pattern: str, *, anchored: bool, ignore_case: bool) -> re.Pattern[str]:
    escaped = re.escape(pattern)
    if anchored:
        escaped = f"^{escaped}$"
    return re.compile(escaped, re.IGNORECASE if ignore_case else 0)


def _has_upper(pattern: str) -> bool:
    return any(_.isupper() for _ in pattern)


class TorrentFilter:
    def __init__(self, spec: QuerySpec, dldirs: Iterable[str]) -> None:
        self._spec = spec
        self._dldirs = list(dldirs)
        self._patterns = [
            _compile(
                _,
                anchored=spec.exact or spec.files,
                ignore_case=not spec.use_case and not spec.files and not _has_upper(_),
            )
            for _ in spec.patterns
        ]
        self._trackers = [
            _compile(
                _,
                anchored=spec.exact,
                ignore_case=not spec.use_case and not _has_upper(_),
            )
            for _ in spec.trackers
        ]

    def filter(self, torrents: Iterable[TorrentRecord]) -> list[TorrentRecord]:
        """
        Returns the matching torrents, raises NoMatches instead of returning
        an empty list.
        """
        rv = [_ for _ in torrents if self.matches(_)]
        if not rv:
            raise NoMatches()
        return rv

    def matches(self, torrent: TorrentRecord) -> bool:
        spec = self._spec

        if self._patterns and not self._match_name(torrent):
            return False

        if self._trackers and not self._match_trackers(torrent):
            return False

        if spec.status:
            if torrent.status is None or torrent.status not in spec.status:
                return False

        if spec.finished is not None:
            if torrent.is_finished is None or torrent.is_finished != spec.finished:
                return False

        if spec.complete and not _is_complete(torrent):
            return False

        if spec.incomplete and not _is_incomplete(torrent):
            return False

        if spec.error:
            if torrent.error is None or torrent.error == TorrentError.OK:
                return False

        if spec.move_aborted:
            # a zero size_when_done is a magnet still fetching metadata
            in_dldir = self.in_dldir(torrent)
            if not _is_complete(torrent) or in_dldir is not True:
                return False

        if spec.moved:
            in_dldir = self.in_dldir(torrent)
            if not _is_complete(torrent) or in_dldir is not False:
                return False

        if spec.cleanable and not self.is_cleanable(torrent):
            return False

        return True

    def is_cleanable(self, torrent: TorrentRecord) -> bool:
        if torrent.is_finished is None or torrent.status is None:
            return False
        in_dldir = self.in_dldir(torrent)
        if in_dldir is None:
            return False
        return (
            torrent.is_finished
            and not in_dldir
            and torrent.status
            not in (TorrentStatus.QUEUED_TO_VERIFY, TorrentStatus.VERIFYING)
        )

    def in_dldir(self, torrent: TorrentRecord) -> bool | None:
        if torrent.download_dir is None:
            return None
        return is_rooted_under(torrent.download_dir, self._dldirs)

    def _match_name(self, torrent: TorrentRecord) -> bool:
        if torrent.name is None:
            return False
        found = (_.search(torrent.name) is not None for _ in self._patterns)
        if self._spec.match_all:
            return all(found)
        return any(found)

    def _match_trackers(self, torrent: TorrentRecord) -> bool:
        if torrent.trackers is None:
            return False
        announces = [_.announce for _ in torrent.trackers]
        if self._spec.exact:
            return any(
                p.search(a) is not None for p in self._trackers for a in announces
            )
        # every pattern has to match the same tracker
        return any(
            all(p.search(a) is not None for p in self._trackers) for a in announces
        )


def _is_complete(torrent: TorrentRecord) -> bool:
    if torrent.left_until_done is None or torrent.size_when_done is None:
        return False
    return torrent.left_until_done == 0 and torrent.size_when_done > 0


def _is_incomplete(torrent: TorrentRecord) -> bool:
    if torrent.left_until_done is None or torrent.size_when_done is None:
        return False
    return torrent.size_when_done > 0 and torrent.left_until_done != 0


T = TypeVar("T")


def _optional_key(get: Callable[[TorrentRecord], T | None], default: T):
    def key(torrent: TorrentRecord) -> tuple[bool, T]:
        value = get(torrent)
        # unknown values sort before known ones
        return (value is not None, default if value is None else value)

    return key


_SORT_KEYS = {
    SortKey.ID: _optional_key(lambda t: t.id, 0),
    SortKey.NAME: _optional_key(lambda t: t.name, ""),
    SortKey.URATE: _optional_key(lambda t: t.rate_upload, 0),
    SortKey.DRATE: _optional_key(lambda t: t.rate_download, 0),
    SortKey.SIZE: _optional_key(lambda t: t.size_when_done, 0),
}


def sort_torrents(
    torrents: Iterable[TorrentRecord], key: SortKey, reverse: bool = False
) -> list[TorrentRecord]:
    """Stable sort, torrents with equal keys keep their input order."""
    return sorted(torrents, key=_SORT_KEYS[key], reverse=reverse)


def filter_and_sort(
    torrents: Iterable[TorrentRecord], spec: QuerySpec, dldirs: Iterable[str]
) -> list[TorrentRecord]:
    filtered = TorrentFilter(spec, dldirs).filter(torrents)
    _L.debug(f"{len(filtered)} torrents matched")
    return sort_torrents(filtered, spec.sort, spec.reverse)
