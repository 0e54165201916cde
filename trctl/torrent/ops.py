import logging
import os
from collections import Counter
from collections.abc import Sequence
from dataclasses import replace
from pathlib import PurePosixPath

from ..console import TorrentConsole
from ..errors import IncompleteRecord, InsufficientSpace, NoMatches
from ..query import QuerySpec, filter_and_sort
from .client import TorrentAction, TorrentClient, TorrentRecord, TorrentStatus


_L = logging.getLogger(__name__)

_QUEUED = (
    TorrentStatus.QUEUED_TO_DOWNLOAD,
    TorrentStatus.QUEUED_TO_SEED,
    TorrentStatus.QUEUED_TO_VERIFY,
)

# which torrents an action can apply to, and whether they must be unfinished
_ACTION_PRESETS: dict[TorrentAction, tuple[tuple[TorrentStatus, ...], bool | None]] = {
    TorrentAction.START: ((TorrentStatus.STOPPED,), False),
    TorrentAction.START_NOW: ((*_QUEUED, TorrentStatus.STOPPED), False),
    TorrentAction.STOP: (
        (*_QUEUED, TorrentStatus.SEEDING, TorrentStatus.DOWNLOADING),
        None,
    ),
}

_ACTION_LABELS = {
    TorrentAction.START: "Started:",
    TorrentAction.START_NOW: "Started now:",
    TorrentAction.STOP: "Stopped:",
    TorrentAction.VERIFY: "Verifying:",
    TorrentAction.REANNOUNCE: "Reannounced:",
}


class TorrentOps:
    """Commands that select existing torrents and act on them."""

    def __init__(
        self,
        *,
        client: TorrentClient,
        console: TorrentConsole,
        dldirs: Sequence[str],
        dst_free_space_to_leave: int,
    ) -> None:
        self._client = client
        self._console = console
        self._dldirs = list(dldirs)
        self._dst_free_space_to_leave = dst_free_space_to_leave

    def query(self, spec: QuerySpec) -> list[TorrentRecord]:
        torrents = self._fetch(spec)
        self._console.print_filtered(torrents)
        return torrents

    def list_trackers(self, spec: QuerySpec) -> Counter[str]:
        torrents = self._fetch(spec)
        counts: Counter[str] = Counter()
        for torrent in torrents:
            for tracker in torrent.trackers or ():
                counts[tracker.announce] += 1
        self._console.print_trackers(counts)
        return counts

    def erase(self, spec: QuerySpec, delete_data: bool) -> list[TorrentRecord]:
        """
        Removes the selected torrents from the daemon, with their data when
        ``delete_data`` is set.

        In files mode every pattern is looked up on its own.
        """
        if not spec.files:
            torrents = self._fetch(spec)
            selected = self._select(torrents)
            self._erase_selected(selected, delete_data)
            return selected

        torrents = self._client.get_torrents(ids=spec.rpc_ids)
        removed: list[TorrentRecord] = []
        for pattern in spec.patterns:
            self._console.info(f"{pattern}:")
            self._console.add_indent()
            try:
                sub_spec = replace(spec, patterns=(pattern,))
                try:
                    filtered = filter_and_sort(torrents, sub_spec, self._dldirs)
                except NoMatches as e:
                    self._console.warn(str(e))
                    continue
                selected = self._select(filtered)
                self._erase_selected(selected, delete_data)
                removed.extend(selected)
            finally:
                self._console.pop_indent()

        if not removed:
            raise NoMatches()
        return removed

    def clean(self, spec: QuerySpec) -> list[TorrentRecord]:
        return self.erase(replace(spec, cleanable=True), delete_data=False)

    def action(self, spec: QuerySpec, action: TorrentAction) -> list[TorrentRecord]:
        preset = _ACTION_PRESETS.get(action)
        if preset is not None:
            status, finished = preset
            spec = replace(spec, status=spec.status + status)
            if finished is not None:
                spec = replace(spec, finished=finished)

        torrents = self._fetch(spec)
        selected = self._select(torrents)
        self._client.torrent_action(_hashes(selected), action)
        self._console.torrent_action_ok(selected, _ACTION_LABELS[action])
        return selected

    def set_location(
        self,
        spec: QuerySpec,
        location: str,
        *,
        move: bool,
        force: bool = False,
    ) -> list[TorrentRecord]:
        torrents = self._fetch(spec)
        selected = self._select(torrents)

        if move and not force:
            self._check_destination(selected, location)

        self._client.set_location(_hashes(selected), location, move)
        self._console.torrent_action_ok(
            selected, "Torrent moved" if move else "Location set"
        )
        return selected

    def _fetch(self, spec: QuerySpec) -> list[TorrentRecord]:
        torrents = self._client.get_torrents(ids=spec.rpc_ids)
        return filter_and_sort(torrents, spec, self._dldirs)

    def _select(self, torrents: list[TorrentRecord]) -> list[TorrentRecord]:
        return [torrents[_] for _ in self._console.select(torrents)]

    def _check_destination(self, torrents: list[TorrentRecord], location: str) -> None:
        needed = 0
        for torrent in torrents:
            if torrent.size_when_done is None:
                raise IncompleteRecord(f"undefined size for torrent {torrent.name}")
            needed += torrent.size_when_done

        free_space = self._client.free_space(location)
        _L.debug(f"{location}: free {free_space}, needed {needed}")
        if free_space - needed < self._dst_free_space_to_leave:
            raise InsufficientSpace()

    def _erase_selected(
        self, torrents: list[TorrentRecord], delete_data: bool
    ) -> None:
        label = "rm" if delete_data else "erase"
        for torrent in torrents:
            self._console.info(f"{label}: {torrent.name or '<unknown>'}")

        self._client.remove_torrents(_hashes(torrents), delete_data)
        if not delete_data:
            return

        for torrent in torrents:
            self._remove_hash_dir(torrent)

    def _remove_hash_dir(self, torrent: TorrentRecord) -> None:
        if torrent.download_dir is None or torrent.hash_string is None:
            raise IncompleteRecord(f"undefined location for torrent {torrent.name}")

        path = PurePosixPath(torrent.download_dir)
        if path.name != torrent.hash_string:
            return
        if self._client.is_remote:
            self._console.info(
                f"not removing the hash dir of a remote torrent {path}"
            )
            return

        self._console.info(f"rmdir {path}")
        try:
            os.rmdir(path)
        except FileNotFoundError:
            _L.debug(f"{path} is already gone")


def _hashes(torrents: list[TorrentRecord]) -> list[str]:
    rv: list[str] = []
    for torrent in torrents:
        if torrent.hash_string is None:
            raise IncompleteRecord(f"undefined hash for torrent {torrent.name}")
        rv.append(torrent.hash_string)
    return rv
