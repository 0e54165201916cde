"""
Space accounting for a download directory.

Torrents that are still downloading have promised part of the free space to
themselves; only what is left after those promises is safe for a new one.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .errors import IncompleteRecord
from .lib import is_rooted_under
from .torrent.client import TorrentRecord, TorrentStatus


_L = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpaceMargin:
    safe_space: int
    magnet_size_estimate: int


@dataclass(frozen=True)
class SpaceBudget:
    free_space: int
    safe_space: int
    total_size: int


@dataclass(frozen=True)
class Admission:
    paused: bool
    would_be_left: int
    would_be_size: int


def compute_space_budget(
    download_dir: str, torrents: Iterable[TorrentRecord], free_space: int
) -> SpaceBudget:
    total_size = 0
    safe_space = free_space
    for torrent in torrents:
        if torrent.download_dir is None:
            raise IncompleteRecord(f"torrent without download dir: {torrent.id}")
        if not is_rooted_under(torrent.download_dir, [download_dir]):
            continue

        final_size, left_until_done = _get_projection(torrent)

        if final_size < 0:
            _L.warning(f"negative final size for torrent {torrent.name}")
        else:
            total_size += final_size

        if left_until_done < 0:
            _L.warning(f"negative left_until_done for torrent {torrent.name}")
        else:
            safe_space -= left_until_done

    return SpaceBudget(
        free_space=free_space, safe_space=safe_space, total_size=total_size
    )


def _get_projection(torrent: TorrentRecord) -> tuple[int, int]:
    """Returns (final_size, left_until_done) as projected from file progress"""
    if torrent.files is None:
        raise IncompleteRecord(f"undefined files for torrent {torrent.name}")
    if torrent.status is None:
        raise IncompleteRecord(f"undefined status for torrent {torrent.name}")

    allocated = sum(_.length for _ in torrent.files if _.bytes_completed > 0)
    if torrent.status == TorrentStatus.STOPPED:
        return allocated, 0

    wanted = torrent.wanted
    if wanted is None or len(wanted) != len(torrent.files):
        raise IncompleteRecord(f"undefined wanted for torrent {torrent.name}")
    final_size = sum(
        file.length
        for file, want in zip(torrent.files, wanted)
        if want or file.bytes_completed > 0
    )
    return final_size, final_size - allocated


def admit(budget: SpaceBudget, length: int, margin: SpaceMargin) -> Admission:
    """
    Decides whether a torrent of ``length`` bytes starts paused: it does when
    the safe space left after it would fall below the margin.
    """
    would_be_left = budget.safe_space - length
    return Admission(
        paused=would_be_left < margin.safe_space,
        would_be_left=would_be_left,
        would_be_size=budget.total_size + length,
    )
