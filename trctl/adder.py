import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .console import AddResult, TorrentConsole
from .dedup import DedupStore
from .errors import AggregateFailure, NothingToDo
from .links import fetch_torrent
from .magnet import is_magnet, parse_magnet
from .metainfo import TorrentMetadata, parse_metainfo
from .space import SpaceMargin, admit, compute_space_budget
from .torrent.client import AddRequest, TorrentClient


_L = logging.getLogger(__name__)

# what space accounting needs from every torrent in the target
_SPACE_FIELDS = ["id", "name", "downloadDir", "status", "files", "wanted"]


@dataclass(frozen=True)
class _Candidate:
    metadata: TorrentMetadata
    metainfo: bytes | None = None
    filename: str | None = None


class TorrentAdder:
    def __init__(
        self,
        *,
        client: TorrentClient,
        console: TorrentConsole,
        dedup: DedupStore,
        base_dir: str,
        margin: SpaceMargin,
        remove_source: bool = True,
    ) -> None:
        self._client = client
        self._console = console
        self._dedup = dedup
        self._base_dir = base_dir
        self._margin = margin
        self._remove_source = remove_source

    def add(
        self,
        location: str | Path,
        dldir: str | None = None,
        use_existing: bool = False,
    ) -> AddResult:
        """
        Adds a .torrent file given as a Path, or a magnet link or an http(s)
        url to a .torrent file given as a str.

        The torrent starts paused when the target directory would drop below
        the safe margin.
        """
        source_path: Path | None = None
        if isinstance(location, Path):
            source_path = location
            candidate = self._from_bytes(location.read_bytes())
        elif is_magnet(location):
            magnet = parse_magnet(location)
            candidate = _Candidate(
                metadata=TorrentMetadata(
                    info_hash=magnet.info_hash,
                    length=self._margin.magnet_size_estimate,
                    name=magnet.name.encode("utf-8"),
                ),
                filename=location,
            )
        else:
            candidate = self._from_bytes(fetch_torrent(location))

        metadata = candidate.metadata
        _L.debug(f"info hash: {metadata.info_hash}")
        existed_at = self._dedup.has(metadata.info_hash)
        if existed_at is not None:
            if not self._console.ask_existing(metadata.name, existed_at):
                raise NothingToDo()

        target = self._get_target_dir(dldir)
        free_space = self._client.free_space(target)
        torrents = self._client.get_torrents(fields=_SPACE_FIELDS)
        budget = compute_space_budget(target, torrents, free_space)
        _L.debug(
            f"safe space: {budget.safe_space}, total size: {budget.total_size}"
            f" in {target}"
        )

        admission = admit(budget, metadata.length, self._margin)
        download_dir = (
            target
            if use_existing
            else str(PurePosixPath(target) / metadata.info_hash)
        )
        _L.debug(f"download dir: {download_dir}, paused: {admission.paused}")

        response = self._client.add_torrent(
            AddRequest(
                info_hash=metadata.info_hash,
                download_dir=download_dir,
                paused=admission.paused,
                metainfo=candidate.metainfo,
                filename=candidate.filename,
                name=metadata.display_name,
            )
        )
        self._dedup.store(metadata.info_hash)

        result = AddResult(
            response=response,
            existed_at=existed_at,
            would_be_full=admission.paused,
            projected_left=admission.would_be_left,
            projected_total=admission.would_be_size,
        )
        self._console.torrent_add_result(result)

        if source_path is not None and self._remove_source:
            _L.debug(f"removing {source_path}")
            source_path.unlink()
        return result

    def add_many(
        self,
        locations: Iterable[str | Path],
        dldir: str | None = None,
        use_existing: bool = False,
    ) -> list[AddResult]:
        """
        Adds every location, a failing one does not stop the rest.

        Raises AggregateFailure with the number of locations that could not be
        added.
        """
        results: list[AddResult] = []
        errors = 0
        for location in locations:
            while True:
                try:
                    results.append(self.add(location, dldir, use_existing))
                except NothingToDo as e:
                    self._console.warn(f"{location}: {e}")
                except Exception as e:
                    _L.exception(f"failed to add {location}")
                    if self._console.ask_retry(e):
                        continue
                    self._console.error(f"{location}: {e}")
                    errors += 1
                break

        if errors:
            raise AggregateFailure(errors)
        return results

    def _from_bytes(self, data: bytes) -> _Candidate:
        return _Candidate(metadata=parse_metainfo(data), metainfo=data)

    def _get_target_dir(self, dldir: str | None) -> str:
        if dldir is None:
            return self._client.get_session().download_dir
        # joining an absolute dldir still keeps it under base_dir
        return str(PurePosixPath(self._base_dir) / dldir.lstrip("/"))
