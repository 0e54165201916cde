"""Shared fixtures: a seeded in-memory daemon and a console fed from a string."""

import io

import bencodepy
import pytest

from trctl.console import TorrentConsole
from trctl.torrent.memory import MemoryClient, sample_torrents


DLDIR = "/var/cache/torrents/dl"
BASE_DIR = "/var/cache/torrents/"


def make_torrent(info: dict, **extra) -> bytes:
    data = {b"announce": b"http://tracker.example/announce", b"info": info}
    data.update(extra)
    return bencodepy.encode(data)


class ConsoleIO:
    def __init__(self, reply: str = "") -> None:
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.input = io.StringIO(reply)

    def create(self, *, interactive: bool = True, ask_existing: bool = True):
        return TorrentConsole(
            base_dir=BASE_DIR,
            interactive=interactive,
            ask_existing=ask_existing,
            out=self.out,
            err=self.err,
            input=self.input,
        )


@pytest.fixture
def client():
    return MemoryClient(sample_torrents(DLDIR), download_dir=DLDIR)


@pytest.fixture
def empty_client():
    return MemoryClient(download_dir=DLDIR)


@pytest.fixture
def console_io():
    return ConsoleIO()


@pytest.fixture
def single_file_torrent():
    return make_torrent({b"name": b"a", b"length": 100, b"piece length": 16384})


@pytest.fixture
def multi_file_torrent():
    return make_torrent(
        {
            b"name": b"album",
            b"piece length": 16384,
            b"files": [
                {b"length": 40, b"path": [b"cd1", b"01.flac"]},
                {b"length": 60, b"path": [b"cd1", b"02.flac"]},
            ],
        }
    )
