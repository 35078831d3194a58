"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ValueClass(StrEnum):
    """Attribute classes backed by a surrogate-id dictionary table."""

    FINGERPRINT = "fingerprint"
    REGION = "region"
    CITY = "city"
    PLATFORM = "platform"
    VERSION = "version"
    CONTACT = "contact"
    EXIT_POLICY = "exit_policy"
    EXIT_POLICY_SUMMARY = "exit_policy_summary"
    EXIT_POLICY_V6_SUMMARY = "exit_policy_v6_summary"


class AddressRole(StrEnum):
    """Role an address plays for a relay."""

    OR = "or"
    EXIT = "exit"
    DIR = "dir"
