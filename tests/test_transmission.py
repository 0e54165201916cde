from types import SimpleNamespace

import pytest
from transmission_rpc import TransmissionError

from trctl.errors import TransportError
from trctl.settings import RpcData
from trctl.torrent import transmission
from trctl.torrent.client import AddRequest, TorrentAction, TorrentError, TorrentStatus


FIELDS = {
    "id": 7,
    "hashString": "a" * 40,
    "name": "thing",
    "status": 4,
    "error": 0,
    "downloadDir": "/data/dl/" + "a" * 40,
    "files": [{"name": "thing/x", "length": 10, "bytesCompleted": 5}],
    "wanted": [1],
    "trackers": [{"announce": "http://t.example/announce", "id": 0, "tier": 0}],
}


class _FakeClient:
    instances: list["_FakeClient"] = []

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.calls: list[tuple] = []
        self.torrents = [SimpleNamespace(fields=FIELDS)]
        self.fail = False
        _FakeClient.instances.append(self)

    def _call(self, *args):
        if self.fail:
            raise TransmissionError("boom")
        self.calls.append(args)

    def get_torrents(self, ids=None, arguments=None):
        self._call("get", ids, arguments)
        return self.torrents

    def add_torrent(self, torrent, download_dir=None, paused=None):
        self._call("add", torrent, download_dir, paused)
        return SimpleNamespace(fields={"id": 8, "hashString": "b" * 40, "name": "new"})

    def start_torrent(self, ids, bypass_queue=False):
        self._call("start", ids, bypass_queue)

    def stop_torrent(self, ids):
        self._call("stop", ids)

    def move_torrent_data(self, ids, location):
        self._call("move", ids, location)

    def locate_torrent_data(self, ids, location):
        self._call("locate", ids, location)

    def free_space(self, path):
        self._call("free", path)
        return None


@pytest.fixture
def fake(monkeypatch):
    _FakeClient.instances = []
    monkeypatch.setattr(transmission, "Client", _FakeClient)
    client = transmission.TransmissionClient(RpcData(username="me", password="pw"))
    return client


def test_get_torrents(fake):
    (record,) = fake.get_torrents()
    assert record.id == 7
    assert record.status == TorrentStatus.DOWNLOADING
    assert record.error == TorrentError.OK
    assert record.files[0].bytes_completed == 5
    assert record.wanted == (True,)
    assert record.trackers[0].announce == "http://t.example/announce"
    assert record.is_finished is None

    rpc = _FakeClient.instances[0]
    assert rpc.kwargs["username"] == "me"
    assert rpc.kwargs["port"] == 9091


def test_add_reports_duplicates(fake):
    request = AddRequest(
        info_hash="a" * 40, download_dir="/data/dl/x", paused=True, metainfo=b"d...e"
    )
    added = fake.add_torrent(request)
    assert added.duplicate
    assert added.id == 8

    rpc = _FakeClient.instances[0]
    rpc.torrents = []
    assert not fake.add_torrent(request).duplicate
    assert ("add", b"d...e", "/data/dl/x", True) in rpc.calls


def test_actions(fake):
    fake.torrent_action(["a" * 40], TorrentAction.START_NOW)
    fake.torrent_action(["a" * 40], TorrentAction.STOP)
    fake.set_location(["a" * 40], "/srv", move=True)
    fake.set_location(["a" * 40], "/srv", move=False)
    assert _FakeClient.instances[0].calls == [
        ("start", ["a" * 40], True),
        ("stop", ["a" * 40]),
        ("move", ["a" * 40], "/srv"),
        ("locate", ["a" * 40], "/srv"),
    ]


def test_errors_are_wrapped(fake):
    fake.get_torrents()
    _FakeClient.instances[0].fail = True
    with pytest.raises(TransportError, match="torrent-get"):
        fake.get_torrents()


def test_free_space_unknown(fake):
    with pytest.raises(TransportError):
        fake.free_space("/data")


@pytest.mark.parametrize(
    "host, force_not_remote, expected",
    [
        ("127.0.0.1", False, False),
        ("localhost", False, False),
        ("::1", False, False),
        ("seedbox.example", False, True),
        ("seedbox.example", True, False),
    ],
)
def test_is_remote(host, force_not_remote, expected):
    client = transmission.TransmissionClient(
        RpcData(host=host, force_not_remote=force_not_remote)
    )
    assert client.is_remote is expected
