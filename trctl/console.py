import sys
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TextIO

from rich.console import Console
from rich.text import Text

from .display import HEADER, format_row, format_size, format_sum
from .errors import AggregateFailure, NoMatches, NothingToDo
from .torrent.client import AddedTorrent, TorrentRecord


@dataclass(frozen=True)
class AddResult:
    response: AddedTorrent
    existed_at: int | None
    would_be_full: bool
    projected_left: int
    projected_total: int


def _strftime(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")


def _create_console(file: TextIO | None, *, stderr: bool = False) -> Console:
    return Console(
        file=file,
        stderr=stderr,
        highlight=False,
        markup=False,
        emoji=False,
        soft_wrap=True,
    )


class TorrentConsole:
    """Terminal view: prints tables and results, asks the operator."""

    def __init__(
        self,
        *,
        base_dir: str,
        interactive: bool = True,
        ask_existing: bool = True,
        out: TextIO | None = None,
        err: TextIO | None = None,
        input: TextIO | None = None,
    ) -> None:
        self.base_dir = base_dir
        self.interactive = interactive
        self._ask_existing = ask_existing
        self._out = _create_console(out)
        self._err = _create_console(err, stderr=err is None)
        self._input = input if input is not None else sys.stdin
        self._indent = 0

    def add_indent(self) -> None:
        self._indent += 4

    def pop_indent(self) -> None:
        self._indent = max(self._indent - 4, 0)

    def info(self, message: str) -> None:
        self._out.print(Text.assemble((" " * self._indent + "-- ", "green"), message))

    def warn(self, message: str) -> None:
        self._err.print(Text.assemble(("-w ", "yellow"), message))

    def error(self, message: str) -> None:
        self._err.print(Text.assemble(("-e ", "red"), message))

    def write(self, line: str) -> None:
        self._out.print(line)

    def print_result(self, error: BaseException | None) -> None:
        if error is None:
            return
        if isinstance(error, (NothingToDo, NoMatches, AggregateFailure)):
            self.warn(str(error))
        else:
            self.error(str(error) or type(error).__name__)

    def print_filtered(self, torrents: Sequence[TorrentRecord]) -> None:
        self.write(HEADER)
        for torrent in torrents:
            self.write(format_row(torrent, self.base_dir))
        self.write(format_sum(list(torrents)))

    def print_trackers(self, counts: Counter[str]) -> None:
        for announce, count in counts.most_common():
            self.write(f"{count:4}: {announce}")

    def torrent_add_result(self, result: AddResult) -> None:
        response = result.response
        name = response.name or "<unknown>"
        if response.duplicate:
            state = "completed" if result.existed_at is not None else "incomplete"
            self.warn(f"Already loaded ({state}) (id: {response.id}): {name}")
            return

        status = ""
        if result.existed_at is not None:
            status += "have "
        if result.would_be_full:
            status += "full "
        self.info(
            f"Torrent added ({status}T{format_size(result.projected_total)}"
            f" F{format_size(result.projected_left)}): {name}"
        )

    def torrent_action_ok(self, torrents: Sequence[TorrentRecord], label: str) -> None:
        self.info(label)
        for torrent in torrents:
            self.info(f"{torrent.id or 0}: {torrent.name or 'no name'}")

    def ask_existing(self, name: bytes, modified: int) -> bool:
        if not self._ask_existing:
            return True
        return self.yesno(
            f"'{name.decode('utf-8', errors='replace')}' exists"
            f" (modified {_strftime(modified)}). Download again"
        )

    def ask_retry(self, error: Exception) -> bool:
        if not self.interactive:
            return False
        return self.yesno(f"Failed: {error}. Retry")

    def yesno(self, question: str) -> bool:
        while True:
            self._out.print(f"{question} [y/N]: ", end="")
            answer = self._read_reply()
            if answer == "y":
                return True
            if answer in ("", "n", "N"):
                return False
            self.warn(f"Invalid selection '{answer}'")

    def select(self, torrents: Sequence[TorrentRecord]) -> list[int]:
        """
        Returns indexes of the torrents the operator picked.

        Without interaction everything is picked.
        """
        selected = self.confirm(torrents, pick_all=not self.interactive)
        if not selected:
            raise NothingToDo("No selection")
        return selected

    def confirm(
        self,
        torrents: Sequence[TorrentRecord],
        pick_all: bool = False,
    ) -> list[int]:
        if not torrents:
            raise NoMatches()
        self.print_filtered(torrents)

        if pick_all:
            return list(range(len(torrents)))

        if len(torrents) == 1:
            if self.yesno("Select"):
                return [0]
            raise NothingToDo("No selection")

        while True:
            self._out.print("Select [a/{n}/N]: ", end="")
            answer = self._read_reply()
            if answer in ("", "n", "N"):
                return []
            if answer == "a":
                return list(range(len(torrents)))
            try:
                number = int(answer)
            except ValueError:
                self.warn(f"Invalid selection '{answer}'")
                continue
            for i, torrent in enumerate(torrents):
                if torrent.id == number:
                    return [i]
            self.warn("Invalid id")

    def _read_reply(self) -> str:
        reply = self._input.readline()
        if not reply.endswith("\n"):
            raise EOFError("unexpected end of file")
        return reply.rstrip("\r\n")
