import logging
from dataclasses import dataclass, field
from pathlib import Path

import dacite
import yaml

from .lib import GIB, parse_size


_L = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/trctl/config.yaml")


class Size(int):
    """Byte count, written as 1024 or "100GiB" in the settings file"""


@dataclass
class RpcData:
    type: str = "transmission"
    protocol: str = "http"
    host: str = "127.0.0.1"
    port: int = 9091
    path: str = "/transmission/rpc"
    username: str | None = None
    password: str | None = None
    force_not_remote: bool = False


@dataclass
class SpaceData:
    free_space_per_dldir: Size = Size(100 * GIB)
    dst_free_space_to_leave: Size = Size(40 * GIB)
    magnet_size_estimate: Size = Size(5 * GIB)


@dataclass
class Data:
    rpc: RpcData = field(default_factory=RpcData)
    space: SpaceData = field(default_factory=SpaceData)
    base_dir: str = "/var/cache/torrents"
    dldirs: list[str] = field(default_factory=lambda: ["/var/cache/torrents/dl"])
    copydir: str | None = None
    dedup_db: str | None = None
    ask_existing: bool = True
    log_path: str | None = None


def _to_size(value: int | str) -> Size:
    return Size(parse_size(value))


def _expand(value: str | None) -> str | None:
    if not value:
        return value
    return str(Path(value).expanduser())


def load_from_path(path: Path) -> Data:
    path = path.expanduser()
    if not path.exists():
        _L.debug(f"no settings at {path}, using defaults")
        return Data()

    with path.open(mode="r", encoding="utf-8") as fin:
        raw_data = yaml.safe_load(fin) or {}

    data = dacite.from_dict(
        Data,
        raw_data,
        config=dacite.Config(type_hooks={Size: _to_size}, strict=True),
    )
    data.copydir = _expand(data.copydir)
    data.dedup_db = _expand(data.dedup_db)
    data.log_path = _expand(data.log_path)
    return data
