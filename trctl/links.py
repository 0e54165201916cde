from asyncio import run
from logging import getLogger

from aiohttp import ClientError, ClientSession

from .errors import ParseError, TransportError


_L = getLogger(__name__)


def fetch_torrent(url: str) -> bytes:
    if not url.lower().startswith(("http://", "https://")):
        raise ParseError(f"unsupported url: {url}")
    return run(_fetch(url))


async def _fetch(url: str) -> bytes:
    _L.debug(f"downloading {url}")
    try:
        async with ClientSession() as session:
            async with session.get(url) as resp:
                resp.raise_for_status()
                return await resp.read()
    except ClientError as e:
        raise TransportError(f"download {url}: {e}") from e
