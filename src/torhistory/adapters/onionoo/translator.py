"""Translate Onionoo payloads into domain records."""

from __future__ import annotations

import json
from logging import getLogger

from pydantic import ValidationError

from torhistory.domain.model import ConsensusSnapshot, RelayDetails
from torhistory.domain.ports.fetching import SnapshotSourceError

from .schema import DetailsDocument, RelayPayload

log = getLogger(__name__)


class OnionooAPIError(SnapshotSourceError):
    """Raised when a details document does not match the expected schema."""


def parse_relay(payload: RelayPayload) -> RelayDetails:
    return RelayDetails(
        fingerprint=payload.fingerprint,
        nickname=payload.nickname,
        or_addresses=tuple(payload.or_addresses),
        exit_addresses=tuple(payload.exit_addresses),
        dir_address=payload.dir_address,
        last_seen=payload.last_seen,
        last_changed_address_or_port=payload.last_changed_address_or_port,
        first_seen=payload.first_seen,
        running=payload.running,
        hibernating=payload.hibernating,
        flags=tuple(payload.flags),
        country=payload.country,
        country_name=payload.country_name,
        region_name=payload.region_name,
        city_name=payload.city_name,
        host_name=payload.host_name,
        as_number=payload.as_number,
        contact=payload.contact.strip(),
        platform=payload.platform,
        version=payload.version,
        exit_policy=tuple(payload.exit_policy) if payload.exit_policy is not None else None,
        exit_policy_summary=payload.exit_policy_summary,
        exit_policy_v6_summary=payload.exit_policy_v6_summary,
        extra=payload.extra_fields,
    )


def parse_document(document: DetailsDocument) -> ConsensusSnapshot:
    return ConsensusSnapshot(
        version=document.version,
        relays_published=document.relays_published,
        bridges_published=document.bridges_published,
        build_revision=document.build_revision,
        relays=tuple(parse_relay(relay) for relay in document.relays),
    )


def decode_snapshot(data: bytes) -> ConsensusSnapshot:
    """Decode raw details-document bytes into a snapshot."""

    try:
        payload = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise OnionooAPIError(f"Consensus document is not valid JSON: {exc}") from exc
    try:
        document = DetailsDocument.model_validate(payload)
    except ValidationError as exc:
        raise OnionooAPIError(f"Unexpected consensus document payload: {exc}") from exc

    snapshot = parse_document(document)
    log.info(
        "Onionoo version %s, build revision %s: %s relays published at %s",
        snapshot.version,
        snapshot.build_revision or "unknown",
        len(snapshot.relays),
        snapshot.relays_published,
    )
    return snapshot
