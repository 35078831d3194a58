"""Pydantic models describing the Onionoo details document."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _none_to_empty(value: object) -> object:
    return "" if value is None else value


def _none_to_list(value: object) -> object:
    return [] if value is None else value


class OnionooBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RelayPayload(OnionooBaseModel):
    """One relay object.

    Fields the reconciliation does not inspect are retained as extras so that
    comparing two payloads compares every decoded field.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    fingerprint: str
    nickname: str = ""
    or_addresses: list[str] = Field(default_factory=list[str])
    exit_addresses: list[str] = Field(default_factory=list[str])
    dir_address: str = ""
    last_seen: str = ""
    last_changed_address_or_port: str = ""
    first_seen: str = ""
    running: bool = False
    hibernating: bool = False
    flags: list[str] = Field(default_factory=list[str])
    country: str = ""
    country_name: str = ""
    region_name: str = ""
    city_name: str = ""
    host_name: str = ""
    as_number: str = Field(default="", alias="as")
    contact: str = ""
    platform: str = ""
    version: str = ""
    exit_policy: list[str] | None = None
    exit_policy_summary: dict[str, Any] | None = None
    exit_policy_v6_summary: dict[str, Any] | None = None

    _normalize_text = field_validator(
        "nickname",
        "dir_address",
        "last_seen",
        "last_changed_address_or_port",
        "first_seen",
        "country",
        "country_name",
        "region_name",
        "city_name",
        "host_name",
        "as_number",
        "contact",
        "platform",
        "version",
        mode="before",
    )(_none_to_empty)

    _normalize_lists = field_validator(
        "or_addresses", "exit_addresses", "flags", mode="before"
    )(_none_to_list)

    @field_validator("fingerprint")
    @classmethod
    def _require_fingerprint(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("relay fingerprint must not be empty")
        return stripped

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class DetailsDocument(OnionooBaseModel):
    """Top-level details document as returned by ``/details``."""

    version: str
    build_revision: str = ""
    relays_published: str
    relays: list[RelayPayload] = Field(default_factory=list[RelayPayload])
    bridges_published: str = ""
    bridges: list[dict[str, Any]] = Field(default_factory=list[dict[str, Any]])

    _normalize_text = field_validator("build_revision", "bridges_published", mode="before")(
        _none_to_empty
    )
