from pathlib import PurePosixPath

from .torrent.client import TorrentError, TorrentRecord, TorrentStatus


HEADER = "ID     Done     Have     Size       ETA       Up     Down  Ratio  Status     Name"

_UNITS = ("K", "M", "G", "T", "P", "E", "Z")


def format_size(size: int | None, width: int = 0, precision: int = 1) -> str:
    """
    Human readable bytes in binary units.

    >>> format_size(1023)
    '1023'
    >>> format_size(2100, 6, 2)
    ' 2.05K'
    """
    if size is None:
        return _na(width, numeric=True)
    if abs(size) < 1024:
        return f"{size:{width}}"

    num = size / 1024.0
    for unit in _UNITS:
        if abs(num) < 1024.0:
            return f"{num:{max(width - 1, 0)}.{precision}f}{unit}"
        num /= 1024.0
    return f"{num:{max(width - 4, 0)}.{precision}f} YiB"


def format_eta(eta: int | None, left_until_done: int | None, width: int = 0) -> str:
    if eta is None:
        return _na(width, numeric=True)
    if eta >= 0:
        if eta < 60:
            return f"{eta:{max(width - 4, 0)}} sec"
        if eta < 60 * 60:
            return f"{eta // 60:{max(width - 4, 0)}} min"
        if eta < 60 * 60 * 24:
            return f"{eta // (60 * 60):{max(width - 4, 0)}} hrs"
        return f"{eta // (60 * 60 * 24):{max(width - 5, 0)}} days"

    if eta == -2:
        text = "Unknown"
    elif eta == -1:
        text = "Done" if left_until_done == 0 else "NA"
    else:
        text = "Err"
    return f"{text:>{width}}"


def format_status(torrent: TorrentRecord, width: int = 0) -> str:
    status = torrent.status
    if status is None:
        return _na(width, numeric=False)

    match status:
        case TorrentStatus.STOPPED:
            if torrent.is_finished is None:
                text = "NA"
            else:
                text = "Finished" if torrent.is_finished else "Stopped"
        case TorrentStatus.QUEUED_TO_VERIFY | TorrentStatus.VERIFYING:
            label = (
                "Will Verify"
                if status == TorrentStatus.QUEUED_TO_VERIFY
                else "Verifying"
            )
            progress = (
                _na(3, numeric=True)
                if torrent.recheck_progress is None
                else f"{torrent.recheck_progress * 100:3.0f}"
            )
            return f"{label:{max(width - 7, 0)}} ({progress}%)"
        case TorrentStatus.QUEUED_TO_DOWNLOAD:
            text = "Queued"
        case TorrentStatus.QUEUED_TO_SEED:
            text = "Queued Sd"
        case _:
            text = _activity(torrent)
    return f"{text:{width}}"


def _activity(torrent: TorrentRecord) -> str:
    getting = torrent.peers_getting_from_us
    sending = torrent.peers_sending_to_us
    if getting is None or sending is None:
        return "ERROR"
    if getting and sending:
        return "Up & Down"
    if sending:
        return "Downloading"
    if getting:
        if torrent.left_until_done is None:
            return "ERROR"
        return "Uploading" if torrent.left_until_done > 0 else "Seeding"
    return "Idle"


def format_download_dir(torrent: TorrentRecord, base_dir: str) -> str:
    """Download dir relative to base_dir, a trailing hash component becomes "/"."""
    if torrent.download_dir is None:
        return "NA"
    path = PurePosixPath(torrent.download_dir)
    if path.is_relative_to(base_dir):
        path = path.relative_to(base_dir)

    if torrent.hash_string is None:
        return str(path)
    if path.name == torrent.hash_string:
        return f"{path.parent}/"
    return str(path)


def downloaded_size(torrent: TorrentRecord) -> int | None:
    size = torrent.size_when_done
    left = torrent.left_until_done
    if size is None or size < 0 or left is None or left < 0:
        return None
    return size - left


def format_row(torrent: TorrentRecord, base_dir: str) -> str:
    error_mark = " " if torrent.error == TorrentError.OK else "*"
    percent = (
        _na(3, numeric=True)
        if torrent.percent_done is None
        else f"{torrent.percent_done * 100:3.0f}"
    )
    ratio = (
        _na(5, numeric=True)
        if torrent.upload_ratio is None
        else f"{torrent.upload_ratio:5.1f}"
    )
    name = "NA" if torrent.name is None else torrent.name
    columns = [
        f"{_na(4, numeric=True) if torrent.id is None else f'{torrent.id:4}'}{error_mark}",
        f"{percent}%",
        format_size(downloaded_size(torrent), 7),
        format_size(torrent.size_when_done, 7),
        format_eta(torrent.eta, torrent.left_until_done, 8),
        format_size(torrent.rate_upload, 7),
        format_size(torrent.rate_download, 7),
        ratio,
        format_status(torrent, 9),
        f"{format_download_dir(torrent, base_dir)}/{name}",
    ]
    row = "  ".join(columns)
    if torrent.error_string:
        row += f"\n       error: {torrent.error_string}"
    return row


def format_sum(torrents: list[TorrentRecord]) -> str:
    total_size = sum(downloaded_size(_) or 0 for _ in torrents)
    total_up = sum(max(_.rate_upload or 0, 0) for _ in torrents)
    total_down = sum(max(_.rate_download or 0, 0) for _ in torrents)
    return (
        f"Sum:  {format_size(total_size, 14)}  "
        f"{format_size(total_up, 26)}  {format_size(total_down, 7)}"
    )


def _na(width: int, *, numeric: bool) -> str:
    return f"{'NA':>{width}}" if numeric else f"{'NA':{width}}"
