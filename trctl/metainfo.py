"""
Reads the parts of a .torrent file needed for admission.

The info hash is the SHA-1 of the ``info`` value exactly as it appears in the
input, so the decoder keeps byte offsets while walking the structure instead
of re-encoding what it decoded.
"""

import hashlib
import logging
from dataclasses import dataclass
from typing import TypeAlias

from .errors import ParseError


_L = logging.getLogger(__name__)

_MAX_DEPTH = 256
_MAX_U64 = 2**64 - 1

_Value: TypeAlias = int | bytes | list["_Value"] | dict[bytes, "_Value"]


@dataclass(frozen=True)
class TorrentMetadata:
    info_hash: str
    length: int
    name: bytes

    @property
    def display_name(self) -> str:
        return self.name.decode("utf-8", errors="replace")


def parse_metainfo(data: bytes) -> TorrentMetadata:
    decoder = _Decoder(data)
    if decoder.at_end():
        raise ParseError("empty torrent data")
    if data[0:1] != b"d":
        raise ParseError("torrent data is not a dictionary")

    info: dict[bytes, _Value] | None = None
    info_hash: str | None = None
    for key, start, value in decoder.iter_top_level():
        if key != b"info":
            continue
        if not isinstance(value, dict):
            raise ParseError("info is not a dictionary")
        info = value
        info_hash = hashlib.sha1(data[start : decoder.pos]).hexdigest()

    if info is None or info_hash is None:
        raise ParseError("missing info dictionary")

    length = _get_length(info)
    name = _get_name(info)
    _L.debug(f"parsed torrent {info_hash}, length {length}")
    return TorrentMetadata(info_hash=info_hash, length=length, name=name)


def _get_length(info: dict[bytes, _Value]) -> int:
    if b"length" in info:
        return _as_u64(info[b"length"], "length")

    files = info.get(b"files")
    if files is None:
        raise ParseError("length could not be calculated")
    if not isinstance(files, list):
        raise ParseError("files is not a list")

    total = 0
    for file in files:
        if not isinstance(file, dict):
            raise ParseError("file entry is not a dictionary")
        if b"length" not in file:
            continue
        total += _as_u64(file[b"length"], "file length")
        if total > _MAX_U64:
            raise ParseError("total length overflowed")
    return total


def _get_name(info: dict[bytes, _Value]) -> bytes:
    name = info.get(b"name")
    if name is not None:
        if not isinstance(name, bytes):
            raise ParseError("name is not a byte string")
        return name

    # multi-file torrents may omit the name, fall back to the first path
    files = info.get(b"files")
    if isinstance(files, list):
        for file in files:
            if not isinstance(file, dict) or b"path" not in file:
                continue
            components = file[b"path"]
            if not isinstance(components, list):
                raise ParseError("path is not a list")
            if not all(isinstance(_, bytes) for _ in components):
                raise ParseError("path component is not a byte string")
            return b"/".join(components)  # type: ignore[arg-type]
    raise ParseError("name could not be found")


def _as_u64(value: _Value, what: str) -> int:
    if not isinstance(value, int):
        raise ParseError(f"{what} is not an integer")
    if value < 0 or value > _MAX_U64:
        raise ParseError(f"{what} out of range: {value}")
    return value


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self._data)

    def iter_top_level(self):
        """
        Yields (key, value_start, value) for the top level dictionary.
        ``self.pos`` is the end offset of the value when a pair is yielded.
        """
        self._expect(b"d")
        seen = False
        while self._peek() != b"e":
            key = self._decode_key()
            start = self.pos
            value = self._decode(1)
            if key == b"info":
                if seen:
                    raise ParseError("duplicate info dictionary")
                seen = True
            yield key, start, value
        self.pos += 1

    def _peek(self) -> bytes:
        if self.pos >= len(self._data):
            raise ParseError(f"unexpected end of data at {self.pos}")
        return self._data[self.pos : self.pos + 1]

    def _expect(self, token: bytes) -> None:
        if self._peek() != token:
            raise ParseError(f"expected {token!r} at {self.pos}")
        self.pos += 1

    def _decode(self, depth: int) -> _Value:
        if depth > _MAX_DEPTH:
            raise ParseError("nesting too deep")
        token = self._peek()
        if token == b"i":
            return self._decode_int()
        if token == b"l":
            return self._decode_list(depth)
        if token == b"d":
            return self._decode_dict(depth)
        if token.isdigit():
            return self._decode_bytes()
        raise ParseError(f"invalid token {token!r} at {self.pos}")

    def _decode_int(self) -> int:
        self.pos += 1
        end = self._data.find(b"e", self.pos)
        if end < 0:
            raise ParseError(f"unterminated integer at {self.pos}")
        raw = self._data[self.pos : end]
        digits = raw[1:] if raw.startswith(b"-") else raw
        if not digits or not digits.isdigit():
            raise ParseError(f"invalid integer {raw!r} at {self.pos}")
        if digits != b"0" and digits.startswith(b"0"):
            raise ParseError(f"leading zero in integer at {self.pos}")
        if raw == b"-0":
            raise ParseError(f"negative zero at {self.pos}")
        self.pos = end + 1
        return int(raw)

    def _decode_bytes(self) -> bytes:
        colon = self._data.find(b":", self.pos)
        if colon < 0:
            raise ParseError(f"unterminated string length at {self.pos}")
        raw = self._data[self.pos : colon]
        if not raw.isdigit() or (raw != b"0" and raw.startswith(b"0")):
            raise ParseError(f"invalid string length {raw!r} at {self.pos}")
        start = colon + 1
        end = start + int(raw)
        if end > len(self._data):
            raise ParseError(f"string runs past end of data at {self.pos}")
        self.pos = end
        return self._data[start:end]

    def _decode_key(self) -> bytes:
        if not self._peek().isdigit():
            raise ParseError(f"dictionary key is not a string at {self.pos}")
        return self._decode_bytes()

    def _decode_list(self, depth: int) -> list[_Value]:
        self.pos += 1
        rv: list[_Value] = []
        while self._peek() != b"e":
            rv.append(self._decode(depth + 1))
        self.pos += 1
        return rv

    def _decode_dict(self, depth: int) -> dict[bytes, _Value]:
        self.pos += 1
        rv: dict[bytes, _Value] = {}
        while self._peek() != b"e":
            key = self._decode_key()
            rv[key] = self._decode(depth + 1)
        self.pos += 1
        return rv
