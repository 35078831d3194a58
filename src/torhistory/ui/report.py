# ruff: noqa: T201

"""Line-oriented relay report printed while snapshots are processed."""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Callable

    from torhistory.domain.model import RelayDetails

DEFAULT_SEPARATOR = ","


@dataclass(frozen=True, slots=True)
class ReportOptions:
    """Which relay columns to print, in a fixed column order."""

    separator: str = DEFAULT_SEPARATOR
    nickname: bool = False
    fingerprint: bool = False
    or_addresses: bool = False
    exit_addresses: bool = False
    dir_address: bool = False
    country: bool = False
    as_number: bool = False
    host_name: bool = False
    flags: bool = False
    ip_per_line: bool = False

    @property
    def enabled(self) -> bool:
        return any(
            (
                self.nickname,
                self.fingerprint,
                self.or_addresses,
                self.exit_addresses,
                self.dir_address,
                self.country,
                self.as_number,
                self.host_name,
                self.flags,
            )
        )

    def with_node_info(self) -> ReportOptions:
        """Shortcut selecting nickname, fingerprint, exit addresses and host name."""

        return replace(
            self, nickname=True, fingerprint=True, exit_addresses=True, host_name=True
        )


def _expanded_column(relay: RelayDetails, options: ReportOptions) -> str | None:
    if not options.ip_per_line:
        return None
    if options.or_addresses and len(relay.or_addresses) > 1:
        return "or"
    if options.exit_addresses and len(relay.exit_addresses) > 1:
        return "exit"
    return None


def format_relay(relay: RelayDetails, options: ReportOptions) -> list[str]:
    """Render ``relay`` as one or more report lines.

    Multi-valued address columns contribute one field per address, unless
    ``ip_per_line`` is set: then the OR column (or, failing that, the exit
    column) is expanded into one line per address with the other fields
    repeated.
    """

    expanded = _expanded_column(relay, options)
    variants: tuple[str, ...] = ("",)
    if expanded == "or":
        variants = relay.or_addresses
    elif expanded == "exit":
        variants = relay.exit_addresses

    lines: list[str] = []
    for variant in variants:
        fields: list[str] = []
        if options.nickname:
            fields.append(relay.nickname)
        if options.fingerprint:
            fields.append(relay.fingerprint)
        if options.or_addresses:
            fields.extend((variant,) if expanded == "or" else relay.or_addresses)
        if options.exit_addresses:
            fields.extend((variant,) if expanded == "exit" else relay.exit_addresses)
        if options.dir_address:
            fields.append(relay.dir_address)
        if options.country:
            fields.append(relay.country)
        if options.as_number:
            fields.append(relay.as_number)
        if options.host_name:
            fields.append(relay.host_name)
        if options.flags:
            fields.append(" ".join(relay.flags))
        if fields:
            lines.append(options.separator.join(fields))
    return lines


@dataclass(slots=True)
class RelayPrinter:
    """Observer writing report lines for each processed relay."""

    options: ReportOptions
    stream: TextIO | None = None

    def __call__(self, relay: RelayDetails) -> None:
        stream = self.stream or sys.stdout
        for line in format_relay(relay, self.options):
            print(line, file=stream)


def build_printer(options: ReportOptions) -> Callable[[RelayDetails], None] | None:
    return RelayPrinter(options) if options.enabled else None
