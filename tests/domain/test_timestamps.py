from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta, timezone

import pytest

from torhistory.domain.timestamps import (
    TimestampOptions,
    TimestampParseError,
    derive_dlts,
    filename_candidates,
    format_dlts,
    match_timestamp,
)


def _fixed_clock() -> datetime:
    return datetime(2023, 5, 6, 7, 8, 9, tzinfo=UTC)


def test_system_time_is_used_without_options() -> None:
    assert derive_dlts(TimestampOptions(), clock=_fixed_clock) == "20230506070809"


@pytest.mark.parametrize(
    ("override", "expected"),
    [
        ("2023-01-02_03:04:05", "20230102030405"),
        ("2023-01-02_03:04", "20230102030400"),
        ("20230102030405", "20230102030405"),
        ("202301011230", "20230101123000"),
        ("202312312359", "20231231235900"),
        ("2023-01-02-03-04-05", "20230102030405"),
        ("2023-01-02T03:04:05+02:00", "20230102010405"),
        ("Mon Jan  2 03:04:05 2023", "20230102030405"),
    ],
)
def test_override_is_parsed_with_known_formats(override: str, expected: str) -> None:
    options = TimestampOptions(override=override)

    assert derive_dlts(options, clock=_fixed_clock) == expected


def test_custom_format_replaces_known_formats() -> None:
    options = TimestampOptions(override="02/01/2023 03h04", time_format="%d/%m/%Y %Hh%M")

    assert derive_dlts(options) == "20230102030400"


def test_custom_format_rejects_otherwise_known_layout() -> None:
    options = TimestampOptions(override="20230102030405", time_format="%d/%m/%Y")

    with pytest.raises(TimestampParseError):
        derive_dlts(options)


def test_unparseable_override_is_an_error() -> None:
    with pytest.raises(TimestampParseError) as excinfo:
        derive_dlts(TimestampOptions(override="yesterday"), clock=_fixed_clock)

    assert excinfo.value.candidates == ("yesterday",)
    assert "yesterday" in str(excinfo.value)


def test_timestamp_is_extracted_from_filename() -> None:
    options = TimestampOptions(extract_from_filename=True)

    dlts = derive_dlts(options, filename="/archive/2023-01-02-03-04-05-details.json")

    assert dlts == "20230102030405"


def test_extraction_only_looks_at_base_name() -> None:
    assert filename_candidates("/data/2020/details-20230102030405.json") == ["20230102030405"]


def test_extraction_with_custom_pattern() -> None:
    options = TimestampOptions(
        extract_from_filename=True,
        filename_pattern=r"\d{8}",
        time_format="%Y%m%d",
    )

    assert derive_dlts(options, filename="relays_20230102_v3.json") == "20230102000000"


def test_extraction_tries_candidates_in_order() -> None:
    parsed = match_timestamp(["2023", "20230102030405"], ["%Y%m%d%H%M%S"])

    assert parsed == datetime(2023, 1, 2, 3, 4, 5)


def test_extraction_without_timestamp_is_an_error() -> None:
    options = TimestampOptions(extract_from_filename=True)

    with pytest.raises(TimestampParseError):
        derive_dlts(options, filename="details.json")


def test_extraction_requires_filename() -> None:
    with pytest.raises(ValueError, match="filename"):
        derive_dlts(TimestampOptions(extract_from_filename=True))


def test_format_dlts_converts_aware_values_to_utc() -> None:
    value = datetime(2023, 1, 2, 1, 0, tzinfo=timezone(timedelta(hours=-5)))

    assert format_dlts(value) == "20230102060000"
    assert format_dlts(datetime(2023, 1, 2, 1, 0)) == "20230102010000"


def test_twelve_digit_filename_timestamp_keeps_its_minutes() -> None:
    options = TimestampOptions(extract_from_filename=True)

    assert derive_dlts(options, filename="details-202301011230.json") == "20230101123000"


def test_fourteen_digit_format_rejects_shorter_stamps() -> None:
    assert match_timestamp(["202301011230"], ["%Y%m%d%H%M%S"]) is None
    assert match_timestamp(["2023-1-2_3:4:5"], ["%Y-%m-%d_%H:%M:%S"]) is None


def test_unix_date_with_utc_zone_name_is_parsed() -> None:
    options = TimestampOptions(override="Mon Jan  2 03:04:05 UTC 2023")

    assert derive_dlts(options) == "20230102030405"


def test_unknown_zone_abbreviation_is_an_error() -> None:
    if "EST" in time.tzname:
        pytest.skip("EST is the local zone name")

    with pytest.raises(TimestampParseError):
        derive_dlts(TimestampOptions(override="Mon Jan  2 03:04:05 EST 2023"))
