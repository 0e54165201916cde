import base64
from dataclasses import dataclass
from urllib.parse import parse_qs, urlparse

from .errors import ParseError


_BTIH_PREFIX = "urn:btih:"


@dataclass(frozen=True)
class MagnetLink:
    info_hash: str
    name: str


def is_magnet(url: str) -> bool:
    return url.lower().startswith("magnet:")


def parse_magnet(url: str) -> MagnetLink:
    parsed = urlparse(url)
    if parsed.scheme.lower() != "magnet":
        raise ParseError("Wrong scheme for a magnet uri")

    query = parse_qs(parsed.query)
    topics = [
        _[len(_BTIH_PREFIX) :]
        for _ in query.get("xt", [])
        if _.lower().startswith(_BTIH_PREFIX)
    ]
    if not topics:
        raise ParseError("Magnet urls without any info hash are not supported")

    names = query.get("dn")
    return MagnetLink(
        info_hash=_normalize_hash(topics[0]), name=names[0] if names else "magnet"
    )


def _normalize_hash(raw: str) -> str:
    if len(raw) == 40:
        try:
            bytes.fromhex(raw)
        except ValueError as e:
            raise ParseError(f"Invalid hash: {raw}") from e
        return raw.lower()

    if len(raw) == 32:
        try:
            digest = base64.b32decode(raw.upper())
        except ValueError as e:
            raise ParseError(f"Invalid hash: {raw}") from e
        return digest.hex()

    raise ParseError(f"Invalid hash: {raw}")
