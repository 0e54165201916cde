import logging
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser, Namespace
from pathlib import Path

import dacite
import yaml
from wcpan.logging import ConfigBuilder

from .adder import TorrentAdder
from .console import TorrentConsole
from .dedup import DedupStore
from .errors import AggregateFailure, NoMatches, NothingToDo, TrctlError
from .query import QuerySpec, SortKey
from .settings import DEFAULT_CONFIG_PATH, Data, load_from_path
from .space import SpaceMargin
from .torrent import TorrentAction, TorrentClient, TorrentStatus, create_torrent_client
from .torrent.ops import TorrentOps


_L = logging.getLogger(__name__)

_ACTIONS = {
    "start": TorrentAction.START,
    "stop": TorrentAction.STOP,
    "start-now": TorrentAction.START_NOW,
    "verify": TorrentAction.VERIFY,
    "reannounce": TorrentAction.REANNOUNCE,
}

_STATUS_NAMES = {_.name.lower().replace("_", "-"): _ for _ in TorrentStatus}


class Trctl:
    def __init__(self, args: list[str]) -> None:
        self._kwargs = _parse_args(args)
        self._cfg = Data()
        # replaced once the settings are loaded
        self._console = TorrentConsole(
            base_dir=self._cfg.base_dir, interactive=not self._kwargs.yes
        )

    def __call__(self) -> int:
        return self._guard()

    def _guard(self) -> int:
        try:
            self._setup()
            self._main()
        except NothingToDo as e:
            self._console.print_result(e)
            return 0
        except (NoMatches, AggregateFailure) as e:
            self._console.print_result(e)
            return 1
        except (TrctlError, OSError, EOFError) as e:
            _L.debug("command failed", exc_info=True)
            self._console.print_result(e)
            return 1
        except Exception as e:
            _L.exception("main function error")
            self._console.print_result(e)
            return 1
        return 0

    def _setup(self) -> None:
        from logging.config import dictConfig

        path = Path(self._kwargs.config)
        try:
            self._cfg = load_from_path(path)
        except (dacite.DaciteError, yaml.YAMLError, ValueError) as e:
            raise TrctlError(f"invalid settings in {path}: {e}") from e

        dictConfig(
            ConfigBuilder(path=self._cfg.log_path, rotate=True)
            .add("trctl", level="D" if self._kwargs.verbose else "I")
            .to_dict()
        )
        self._console = TorrentConsole(
            base_dir=self._cfg.base_dir,
            interactive=not self._kwargs.yes,
            ask_existing=self._cfg.ask_existing,
        )

    def _main(self) -> None:
        kwargs = self._kwargs
        if kwargs.command is None:
            raise NothingToDo("No command given, see --help")

        client = create_torrent_client(self._cfg.rpc, mock=kwargs.mock)
        match kwargs.command:
            case "add" | "add-url":
                self._add(client, kwargs)
            case _:
                self._run_query_command(client, kwargs)

    def _add(self, client: TorrentClient, kwargs: Namespace) -> None:
        cfg = self._cfg
        locations: list[str | Path]
        if kwargs.command == "add":
            locations = [Path(_) for _ in kwargs.paths]
            remove_source = not kwargs.keep
        else:
            locations = list(kwargs.urls)
            remove_source = False

        with DedupStore(
            copydir=None if cfg.copydir is None else Path(cfg.copydir),
            db_path=None if cfg.dedup_db is None else Path(cfg.dedup_db),
        ) as dedup:
            adder = TorrentAdder(
                client=client,
                console=self._console,
                dedup=dedup,
                base_dir=cfg.base_dir,
                margin=_get_margin(cfg),
                remove_source=remove_source,
            )
            adder.add_many(locations, kwargs.dldir, kwargs.existing)

    def _run_query_command(self, client: TorrentClient, kwargs: Namespace) -> None:
        ops = TorrentOps(
            client=client,
            console=self._console,
            dldirs=self._cfg.dldirs,
            dst_free_space_to_leave=self._cfg.space.dst_free_space_to_leave,
        )
        spec = _get_query_spec(kwargs)
        match kwargs.command:
            case "query":
                ops.query(spec)
            case "list-trackers":
                ops.list_trackers(spec)
            case "rm":
                ops.erase(spec, delete_data=True)
            case "erase":
                ops.erase(spec, delete_data=False)
            case "clean":
                ops.clean(spec)
            case "set-location":
                ops.set_location(
                    spec, kwargs.location, move=kwargs.move, force=kwargs.force
                )
            case command:
                ops.action(spec, _ACTIONS[command])


def _get_margin(cfg: Data) -> SpaceMargin:
    return SpaceMargin(
        safe_space=cfg.space.free_space_per_dldir,
        magnet_size_estimate=cfg.space.magnet_size_estimate,
    )


def _get_query_spec(kwargs: Namespace) -> QuerySpec:
    return QuerySpec(
        patterns=tuple(kwargs.patterns),
        trackers=tuple(kwargs.trackers),
        status=tuple(_STATUS_NAMES[_] for _ in kwargs.status),
        ids=tuple(kwargs.ids),
        hashes=tuple(_.lower() for _ in kwargs.hsh),
        use_case=kwargs.use_case,
        exact=kwargs.exact,
        files=kwargs.files,
        match_all=kwargs.match_all,
        finished=None if kwargs.finished is None else kwargs.finished == "true",
        error=kwargs.error,
        complete=kwargs.complete,
        incomplete=kwargs.incomplete,
        move_aborted=kwargs.move_aborted,
        moved=kwargs.moved,
        cleanable=kwargs.cleanable,
        sort=SortKey(kwargs.sort),
        reverse=kwargs.reverse,
    )


def _add_query_arguments(parser: ArgumentParser) -> None:
    parser.add_argument(
        "-u",
        "--use-case",
        action="store_true",
        help="case sensitive search, also enabled by an uppercase letter",
    )
    parser.add_argument(
        "-e",
        "--exact",
        action="store_true",
        help="exact match on torrent or tracker name",
    )
    parser.add_argument(
        "--finished",
        choices=["true", "false"],
        help="match finished (true) or unfinished (false)",
    )
    parser.add_argument(
        "--error", action="store_true", help="match torrents with an error"
    )
    parser.add_argument("--complete", action="store_true", help="match completed")
    parser.add_argument(
        "--incomplete", action="store_true", help="match incomplete"
    )
    parser.add_argument(
        "--move-aborted",
        action="store_true",
        help="match completed that are still in a dldir",
    )
    parser.add_argument(
        "--moved", action="store_true", help="match completed not in a dldir"
    )
    parser.add_argument(
        "--cleanable", action="store_true", help="match moved and finished"
    )
    parser.add_argument(
        "--and",
        dest="match_all",
        action="store_true",
        help="all the patterns have to match instead of one",
    )
    parser.add_argument(
        "--files",
        action="store_true",
        help="exact match on torrent name, one pattern at a time",
    )
    parser.add_argument(
        "-s",
        "--sort",
        choices=[_.value for _ in SortKey],
        default=SortKey.ID.value,
        help="sort the output",
    )
    parser.add_argument(
        "-r", "--reverse", action="store_true", help="print in reverse"
    )
    parser.add_argument(
        "--ids", type=int, action="append", default=[], help="match ids"
    )
    parser.add_argument("--hsh", action="append", default=[], help="match hashes")
    parser.add_argument(
        "--trackers", action="append", default=[], help="match trackers"
    )
    parser.add_argument(
        "--status",
        choices=list(_STATUS_NAMES),
        action="append",
        default=[],
        help="match status(es)",
    )
    parser.add_argument("patterns", nargs="*", help="query names")


def _add_dldir_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("--dldir", type=str, help="download directory")
    parser.add_argument(
        "--existing",
        action="store_true",
        help="the torrent already has files in the dldir",
    )


def _parse_args(args: list[str]) -> Namespace:
    parser = ArgumentParser(prog="trctl", formatter_class=ArgumentDefaultsHelpFormatter)
    parser.add_argument(
        "-c",
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG_PATH),
        help="settings file name",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log debug messages"
    )
    parser.add_argument(
        "--mock", action="store_true", help="run with an in-memory client"
    )
    parser.add_argument(
        "-y", "--yes", action="store_true", help="don't ask for confirmation"
    )

    commands = parser.add_subparsers(dest="command")

    add = commands.add_parser(
        "add", help="add torrent files", formatter_class=ArgumentDefaultsHelpFormatter
    )
    _add_dldir_arguments(add)
    add.add_argument(
        "-k", "--keep", action="store_true", help="keep the torrent file once added"
    )
    add.add_argument("paths", nargs="+", help="path to the torrent file")

    add_url = commands.add_parser(
        "add-url", help="add magnet links or torrent files from urls"
    )
    _add_dldir_arguments(add_url)
    add_url.add_argument(
        "urls", nargs="+", help="url to a torrent file or a magnet link"
    )

    query_commands = [
        ("query", ["q"], "query torrents"),
        ("rm", [], "remove torrents and their data"),
        ("erase", [], "remove torrents but leave downloaded data in place"),
        ("clean", [], "erase finished torrents that were moved"),
        ("start", [], "queue torrents"),
        ("stop", [], "stop torrents"),
        ("start-now", [], "start torrents without queuing"),
        ("verify", [], "verify torrents"),
        ("reannounce", [], "reannounce torrents"),
        ("list-trackers", [], "list all trackers used by the torrents"),
    ]
    for name, aliases, help_ in query_commands:
        sub = commands.add_parser(name, aliases=aliases, help=help_)
        # aliases would otherwise show up as the command
        sub.set_defaults(command=name)
        _add_query_arguments(sub)

    set_location = commands.add_parser(
        "set-location", help="move torrents with the daemon"
    )
    set_location.add_argument(
        "--move",
        action="store_true",
        help="move files instead of looking them up in the new location",
    )
    set_location.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="move even if the destination is low on disk space",
    )
    set_location.add_argument("--location", required=True, help="new location")
    _add_query_arguments(set_location)

    return parser.parse_args(args[1:])


def run() -> int:
    main = Trctl(sys.argv)
    return main()
