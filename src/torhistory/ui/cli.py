from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from torhistory.app import import_consensus
from torhistory.config import (
    ConfigurationError,
    ConsensusConfig,
    SyncConfig,
    configure_logging,
    get_backup_config,
    get_consensus_config,
    get_sync_config,
    level_for_verbosity,
)
from torhistory.domain.filters import parse_flag_filter
from torhistory.domain.reconciliation import DEFAULT_REFRESH_INTERVAL
from torhistory.ui.report import DEFAULT_SEPARATOR, ReportOptions, build_printer

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CliSettings:
    consensus: ConsensusConfig
    sync: SyncConfig
    report: ReportOptions
    flag_filter: tuple[str, ...]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Record Tor relay consensus history, storing only what changed"
    )
    parser.add_argument(
        "--verbosity",
        type=int,
        default=0,
        help="Verbosity level; 0 shows warnings only, 3 and above show debug output "
        "(default: %(default)s)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only show warnings and errors")

    source = parser.add_argument_group("consensus source")
    source.add_argument(
        "--import-data-file",
        type=str,
        help="Import consensus documents from files matching this glob pattern "
        "instead of downloading",
    )
    source.add_argument(
        "--consensus-url",
        type=str,
        help="Onionoo details URL to download the consensus from",
    )
    source.add_argument(
        "--consensus-backup-file",
        type=str,
        help="Back up every acquired document at this path prefix; a timestamp is appended",
    )
    source.add_argument(
        "--consensus-backup-gzip", action="store_true", help="Gzip the backup files"
    )
    source.add_argument(
        "--consensus-download-time",
        type=str,
        help="Time the imported consensus was downloaded",
    )
    source.add_argument(
        "--consensus-download-time-format",
        type=str,
        help="strptime format of --consensus-download-time or of filename timestamps",
    )
    source.add_argument(
        "--extract-consensus-download-time-from-filename",
        action="store_true",
        help="Read the download time of each imported file from its name",
    )
    source.add_argument(
        "--filename-regex",
        type=str,
        help="Regex locating the timestamp in imported file names "
        "(implies --extract-consensus-download-time-from-filename)",
    )

    storage = parser.add_argument_group("storage")
    storage.add_argument(
        "--reinit-caches-every",
        type=int,
        default=None,
        help="Fully rebuild the caches every K snapshots during bulk import "
        f"(default: {DEFAULT_REFRESH_INTERVAL})",
    )
    storage.add_argument(
        "--no-store",
        action="store_true",
        help="Acquire, filter and print without writing to the database",
    )

    output = parser.add_argument_group("output")
    output.add_argument(
        "--filter",
        type=str,
        default="",
        help="Comma-separated relay flags that must all be present, e.g. Exit,Guard",
    )
    output.add_argument(
        "--separator",
        type=str,
        default=DEFAULT_SEPARATOR,
        help="Separator between printed fields (default: %(default)r)",
    )
    output.add_argument("--nick", action="store_true", help="Print relay nickname")
    output.add_argument("--fp", action="store_true", help="Print relay fingerprint")
    output.add_argument(
        "--or", dest="or_addresses", action="store_true", help="Print OR addresses"
    )
    output.add_argument(
        "--ex", dest="exit_addresses", action="store_true", help="Print exit addresses"
    )
    output.add_argument(
        "--di", dest="dir_address", action="store_true", help="Print directory address"
    )
    output.add_argument("--country", action="store_true", help="Print relay country")
    output.add_argument(
        "--as", dest="as_number", action="store_true", help="Print autonomous system"
    )
    output.add_argument("--hostname", action="store_true", help="Print relay host name")
    output.add_argument("--flags", action="store_true", help="Print relay flags")
    output.add_argument(
        "--ip-per-line",
        action="store_true",
        help="Print one line per address when a relay has several, repeating other fields",
    )
    output.add_argument(
        "--node-info",
        action="store_true",
        help="Shortcut for --nick --fp --ex --hostname",
    )
    return parser.parse_args(list(argv))


def _build_settings(args: argparse.Namespace) -> CliSettings:
    consensus = get_consensus_config(
        url=args.consensus_url,
        filename=args.import_data_file,
        download_time=args.consensus_download_time,
        download_time_format=args.consensus_download_time_format,
        extract_time_from_filename=args.extract_consensus_download_time_from_filename,
        filename_regex=args.filename_regex,
        backup=get_backup_config(
            prefix=args.consensus_backup_file,
            gzip=args.consensus_backup_gzip or None,
        ),
    )
    sync = get_sync_config(reinit_caches_every=args.reinit_caches_every, store=not args.no_store)
    report = ReportOptions(
        separator=args.separator,
        nickname=args.nick,
        fingerprint=args.fp,
        or_addresses=args.or_addresses,
        exit_addresses=args.exit_addresses,
        dir_address=args.dir_address,
        country=args.country,
        as_number=args.as_number,
        host_name=args.hostname,
        flags=args.flags,
        ip_per_line=args.ip_per_line,
    )
    if args.node_info:
        report = report.with_node_info()
    return CliSettings(
        consensus=consensus,
        sync=sync,
        report=report,
        flag_filter=parse_flag_filter(args.filter),
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(
            level=level_for_verbosity(parsed_args.verbosity, quiet=parsed_args.quiet),
            force=True,
        )
        settings = _build_settings(parsed_args)
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        import_consensus(
            consensus=settings.consensus,
            sync=settings.sync,
            flag_filter=settings.flag_filter,
            observer=build_printer(settings.report),
        )
    except Exception:
        log.exception("Fatal error during consensus import")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
