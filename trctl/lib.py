import re
from collections.abc import Iterable
from pathlib import PurePosixPath


GIB = 1024 * 1024 * 1024

_UNITS = {
    "": 1,
    "b": 1,
    "k": 1000,
    "kb": 1000,
    "m": 1000**2,
    "mb": 1000**2,
    "g": 1000**3,
    "gb": 1000**3,
    "t": 1000**4,
    "tb": 1000**4,
    "kib": 1024,
    "mib": 1024**2,
    "gib": 1024**3,
    "tib": 1024**4,
}
_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]*)\s*$")


def parse_size(value: int | str) -> int:
    """
    Returns bytes for values such as 1024, "100GiB" or "40 GB".
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid size: {value}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"negative size: {value}")
        return value

    rv = _SIZE_PATTERN.match(value)
    if rv is None:
        raise ValueError(f"invalid size: {value}")
    number, unit = rv.groups()
    multiplier = _UNITS.get(unit.lower())
    if multiplier is None:
        raise ValueError(f"unknown size unit: {unit}")
    return int(float(number) * multiplier)


def is_rooted_under(path: str, roots: Iterable[str]) -> bool:
    """Component-wise prefix test, "/a/bc" is not under "/a/b"."""
    p = PurePosixPath(path)
    return any(p.is_relative_to(PurePosixPath(root)) for root in roots)
