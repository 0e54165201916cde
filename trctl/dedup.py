import logging
import sqlite3
import time
from pathlib import Path


_L = logging.getLogger(__name__)

_SQL_CREATE = "CREATE TABLE IF NOT EXISTS torrents (hash TEXT PRIMARY KEY, timestamp BIGINT);"
_SQL_INSERT = "INSERT OR IGNORE INTO torrents (hash, timestamp) VALUES (?, ?);"
_SQL_SELECT = "SELECT timestamp FROM torrents WHERE hash = ?;"


class DedupStore:
    """
    Remembers info hashes that were added before.

    Two places are consulted in order: a directory of archived
    ``<hash>.torrent`` files, then a SQLite table of hash and timestamp.
    Either can be left unconfigured.
    """

    def __init__(self, *, copydir: Path | None, db_path: Path | None) -> None:
        self._copydir = copydir
        self._db_path = db_path
        self._db: sqlite3.Connection | None = None

    def has(self, info_hash: str) -> int | None:
        """Returns the unix time the hash was seen, or None."""
        if self._copydir is not None:
            rv = self._has_in_copydir(self._copydir, info_hash)
            if rv is not None:
                return rv

        db = self._get_db()
        if db is None:
            return None
        row = db.execute(_SQL_SELECT, (info_hash,)).fetchone()
        return None if row is None else row[0]

    def store(self, info_hash: str) -> None:
        """Inserts the hash unless it is already there."""
        db = self._get_db()
        if db is None:
            _L.debug("dedup table not enabled")
            return
        with db:
            db.execute(_SQL_INSERT, (info_hash, int(time.time())))

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _get_db(self) -> sqlite3.Connection | None:
        if self._db_path is None:
            return None
        if self._db is None:
            _L.debug(f"opening dedup table {self._db_path}")
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db = sqlite3.connect(self._db_path)
            with self._db:
                self._db.execute(_SQL_CREATE)
        return self._db

    @staticmethod
    def _has_in_copydir(copydir: Path, info_hash: str) -> int | None:
        path = copydir / f"{info_hash}.torrent"
        try:
            return int(path.stat().st_mtime)
        except FileNotFoundError:
            return None
