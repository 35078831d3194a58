from __future__ import annotations

import io
from typing import TYPE_CHECKING

from torhistory.ui.report import RelayPrinter, ReportOptions, build_printer, format_relay
from tests.helpers.relays import make_relay

if TYPE_CHECKING:
    from torhistory.domain.model import RelayDetails


def _relay() -> RelayDetails:
    return make_relay(
        nickname="exitrelay",
        fingerprint="F" * 40,
        or_addresses=("198.51.100.7:443", "[2001:db8::7]:443"),
        exit_addresses=("198.51.100.7", "198.51.100.8"),
        country="de",
        as_number="AS64496",
        host_name="exit.example.net",
        flags=("Exit", "Running"),
    )


def test_fields_follow_fixed_column_order() -> None:
    options = ReportOptions(
        nickname=True,
        fingerprint=True,
        country=True,
        as_number=True,
        host_name=True,
        flags=True,
    )

    assert format_relay(_relay(), options) == [
        f"exitrelay,{'F' * 40},de,AS64496,exit.example.net,Exit Running"
    ]


def test_multi_valued_addresses_are_inlined_by_default() -> None:
    options = ReportOptions(separator=";", nickname=True, exit_addresses=True)

    assert format_relay(_relay(), options) == ["exitrelay;198.51.100.7;198.51.100.8"]


def test_ip_per_line_expands_or_addresses_first() -> None:
    options = ReportOptions(nickname=True, or_addresses=True, exit_addresses=True, ip_per_line=True)

    assert format_relay(_relay(), options) == [
        "exitrelay,198.51.100.7:443,198.51.100.7,198.51.100.8",
        "exitrelay,[2001:db8::7]:443,198.51.100.7,198.51.100.8",
    ]


def test_ip_per_line_falls_back_to_exit_addresses() -> None:
    relay = make_relay(nickname="solo", exit_addresses=("198.51.100.7", "198.51.100.8"))
    options = ReportOptions(nickname=True, or_addresses=True, exit_addresses=True, ip_per_line=True)

    assert format_relay(relay, options) == [
        "solo,192.0.2.1:9001,198.51.100.7",
        "solo,192.0.2.1:9001,198.51.100.8",
    ]


def test_node_info_shortcut() -> None:
    options = ReportOptions().with_node_info()

    assert format_relay(_relay(), options) == [
        f"exitrelay,{'F' * 40},198.51.100.7,198.51.100.8,exit.example.net"
    ]


def test_printer_writes_each_line() -> None:
    stream = io.StringIO()
    options = ReportOptions(nickname=True, or_addresses=True, ip_per_line=True)
    printer = RelayPrinter(options, stream)

    printer(_relay())

    assert stream.getvalue().splitlines() == [
        "exitrelay,198.51.100.7:443",
        "exitrelay,[2001:db8::7]:443",
    ]


def test_build_printer_without_columns_returns_none() -> None:
    assert build_printer(ReportOptions(separator="|")) is None
    assert isinstance(build_printer(ReportOptions(flags=True)), RelayPrinter)
