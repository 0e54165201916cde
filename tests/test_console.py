import pytest

from trctl.console import AddResult
from trctl.errors import NoMatches, NothingToDo, TrctlError
from trctl.torrent.client import AddedTorrent
from trctl.torrent.memory import sample_torrents

from .conftest import DLDIR, ConsoleIO


TORRENTS = sample_torrents(DLDIR)


def test_yesno():
    io = ConsoleIO("y\n")
    assert io.create().yesno("Go") is True
    assert io.out.getvalue() == "Go [y/N]: "

    io = ConsoleIO("\n")
    assert io.create().yesno("Go") is False


def test_yesno_end_of_file():
    with pytest.raises(EOFError, match="unexpected end of file"):
        ConsoleIO("y").create().yesno("Go")


def test_confirm_single():
    io = ConsoleIO("y\n")
    assert io.create().confirm(TORRENTS[:1]) == [0]
    assert io.out.getvalue().endswith("Select [y/N]: ")


def test_confirm_single_declined():
    with pytest.raises(NothingToDo):
        ConsoleIO("n\n").create().confirm(TORRENTS[:1])


def test_confirm_empty():
    with pytest.raises(NoMatches):
        ConsoleIO().create().confirm([])


def test_confirm_many_invalid_input():
    io = ConsoleIO("y\n6\n-2\n2\na\n")
    assert io.create().confirm(TORRENTS) == [1]
    assert io.out.getvalue().count("Select [a/{n}/N]: ") == 4
    assert io.err.getvalue().splitlines() == [
        "-w Invalid selection 'y'",
        "-w Invalid id",
        "-w Invalid id",
    ]


def test_confirm_many_all():
    assert ConsoleIO("a\n").create().confirm(TORRENTS) == [0, 1, 2]


def test_confirm_many_none():
    assert ConsoleIO("N\n").create().confirm(TORRENTS) == []


def test_select_without_interaction():
    io = ConsoleIO()
    console = io.create(interactive=False)
    assert console.select(TORRENTS) == [0, 1, 2]
    assert console.select(TORRENTS[:1]) == [0]
    assert "Select" not in io.out.getvalue()


def test_select_nothing():
    with pytest.raises(NothingToDo, match="No selection"):
        ConsoleIO("\n").create().select(TORRENTS)


def test_ask_existing():
    io = ConsoleIO("y\n")
    assert io.create().ask_existing(b"name", 0) is True
    assert "'name' exists" in io.out.getvalue()

    io = ConsoleIO()
    assert io.create(ask_existing=False).ask_existing(b"name", 0) is True
    assert io.out.getvalue() == ""


def test_ask_retry_without_interaction():
    io = ConsoleIO()
    assert io.create(interactive=False).ask_retry(ValueError("x")) is False


def test_torrent_add_result():
    io = ConsoleIO()
    console = io.create()
    console.torrent_add_result(
        AddResult(
            response=AddedTorrent(id=4, hash_string="a" * 40, name="new", duplicate=False),
            existed_at=10,
            would_be_full=True,
            projected_left=2048,
            projected_total=3 * 1024**3,
        )
    )
    assert io.out.getvalue() == "-- Torrent added (have full T3.0G F2.0K): new\n"

    console.torrent_add_result(
        AddResult(
            response=AddedTorrent(id=1, hash_string="a" * 40, name="old", duplicate=True),
            existed_at=None,
            would_be_full=False,
            projected_left=0,
            projected_total=0,
        )
    )
    assert io.err.getvalue() == "-w Already loaded (incomplete) (id: 1): old\n"


def test_print_result():
    io = ConsoleIO()
    console = io.create()
    console.print_result(None)
    console.print_result(NothingToDo())
    console.print_result(TrctlError("boom"))
    assert io.err.getvalue().splitlines() == ["-w Nothing to do", "-e boom"]
