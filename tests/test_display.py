import pytest

from trctl.display import (
    HEADER,
    format_download_dir,
    format_eta,
    format_row,
    format_size,
    format_status,
    format_sum,
)
from trctl.torrent.client import TorrentRecord, TorrentStatus
from trctl.torrent.memory import sample_torrents

from .conftest import BASE_DIR, DLDIR


@pytest.mark.parametrize(
    "size, width, expected",
    [
        (0, 7, "      0"),
        (1023, 0, "1023"),
        (2541190084, 7, "   2.4G"),
        (2100, 6, " 2.05K"),
        (None, 7, "     NA"),
    ],
)
def test_format_size(size, width, expected):
    precision = 2 if size == 2100 else 1
    assert format_size(size, width, precision) == expected


@pytest.mark.parametrize(
    "eta, left, expected",
    [
        (20, 5, "  20 sec"),
        (61, 5, "   1 min"),
        (7200, 5, "   2 hrs"),
        (3 * 86400, 5, "  3 days"),
        (-2, 5, " Unknown"),
        (-1, 0, "    Done"),
        (-1, 5, "      NA"),
        (-7, 5, "     Err"),
    ],
)
def test_format_eta(eta, left, expected):
    assert format_eta(eta, left, 8) == expected


def test_format_status():
    assert format_status(TorrentRecord(status=TorrentStatus.STOPPED, is_finished=True)) == "Finished"
    assert format_status(TorrentRecord(status=TorrentStatus.STOPPED, is_finished=False)) == "Stopped"
    assert (
        format_status(
            TorrentRecord(status=TorrentStatus.VERIFYING, recheck_progress=0.5)
        )
        == "Verifying ( 50%)"
    )
    assert format_status(TorrentRecord(status=TorrentStatus.QUEUED_TO_SEED)) == "Queued Sd"
    assert (
        format_status(
            TorrentRecord(
                status=TorrentStatus.SEEDING,
                peers_getting_from_us=2,
                peers_sending_to_us=0,
                left_until_done=0,
            )
        )
        == "Seeding"
    )
    assert (
        format_status(
            TorrentRecord(
                status=TorrentStatus.DOWNLOADING,
                peers_getting_from_us=1,
                peers_sending_to_us=3,
            )
        )
        == "Up & Down"
    )
    assert format_status(TorrentRecord(), 4) == "NA  "


def test_format_download_dir():
    hash_string = "a" * 40
    torrent = TorrentRecord(
        hash_string=hash_string, download_dir=f"{DLDIR}/{hash_string}"
    )
    assert format_download_dir(torrent, BASE_DIR) == "dl/"
    assert format_download_dir(torrent, "/elsewhere") == f"{DLDIR}/"
    moved = TorrentRecord(hash_string=hash_string, download_dir="/var/cache/torrents/done")
    assert format_download_dir(moved, BASE_DIR) == "done"
    assert format_download_dir(TorrentRecord(), BASE_DIR) == "NA"


def test_format_row():
    torrents = sample_torrents(DLDIR)
    assert format_row(torrents[0], BASE_DIR) == (
        "   1   100%     2.4G     2.4G   Unknown        0        0    0.8  Idle       dl//testing.pdf"
    )
    assert format_row(torrents[1], BASE_DIR) == (
        "   2*  100%     2.4G     2.4G   Unknown        0        0    0.8  Idle       dl//testing2.pdf\n"
        "       error: error!!!"
    )


def test_format_row_unknown():
    row = format_row(TorrentRecord(), BASE_DIR)
    assert row.startswith("  NA*   NA%")
    assert row.endswith("NA/NA")


def test_format_sum():
    assert format_sum(sample_torrents(DLDIR)) == (
        "Sum:            7.1G                           0        0"
    )


def test_header_lines_up_with_rows():
    row = format_row(sample_torrents(DLDIR)[0], BASE_DIR)
    assert row.index("Idle") == HEADER.index("Status")
