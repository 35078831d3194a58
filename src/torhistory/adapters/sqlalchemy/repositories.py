"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Select, func, insert, select, update

from torhistory.adapters.sqlalchemy.mappings import (
    VALUE_TABLES,
    city_table,
    consensus_import_table,
    contact_table,
    country_table,
    exit_policy_summary_table,
    exit_policy_table,
    exit_policy_v6_summary_table,
    fingerprint_table,
    platform_table,
    relay_address_table,
    relay_table,
    version_table,
)
from torhistory.domain.model import AddressHistory, AddressRole, LatestState

if TYPE_CHECKING:
    from sqlalchemy import Row
    from sqlalchemy.orm import Session

    from torhistory.domain.model import Dlts, RelayRow, ValueClass


def _latest_state_select() -> Select[tuple[object, ...]]:
    return select(
        relay_table.c.id,
        relay_table.c.fingerprint_id,
        fingerprint_table.c.value.label("fingerprint"),
        relay_table.c.nickname,
        country_table.c.code.label("country"),
        city_table.c.value.label("city_name"),
        platform_table.c.value.label("platform"),
        version_table.c.value.label("version"),
        contact_table.c.value.label("contact"),
        relay_table.c.last_changed_address_or_port,
        relay_table.c.first_seen,
        exit_policy_table.c.value.label("exit_policy"),
        exit_policy_summary_table.c.value.label("exit_policy_summary"),
        exit_policy_v6_summary_table.c.value.label("exit_policy_v6_summary"),
        relay_table.c.record_last_seen,
    ).select_from(
        relay_table.join(fingerprint_table, relay_table.c.fingerprint_id == fingerprint_table.c.id)
        .outerjoin(country_table, relay_table.c.country_id == country_table.c.id)
        .outerjoin(city_table, relay_table.c.city_id == city_table.c.id)
        .outerjoin(platform_table, relay_table.c.platform_id == platform_table.c.id)
        .outerjoin(version_table, relay_table.c.version_id == version_table.c.id)
        .outerjoin(contact_table, relay_table.c.contact_id == contact_table.c.id)
        .outerjoin(exit_policy_table, relay_table.c.exit_policy_id == exit_policy_table.c.id)
        .outerjoin(
            exit_policy_summary_table,
            relay_table.c.exit_policy_summary_id == exit_policy_summary_table.c.id,
        )
        .outerjoin(
            exit_policy_v6_summary_table,
            relay_table.c.exit_policy_v6_summary_id == exit_policy_v6_summary_table.c.id,
        )
    )


def _to_latest_state(row: Row[tuple[object, ...]]) -> LatestState:
    values = row._mapping  # noqa: SLF001
    return LatestState(
        row_id=values["id"],
        fingerprint_id=values["fingerprint_id"],
        fingerprint=values["fingerprint"],
        nickname=values["nickname"] or "",
        country=values["country"] or "",
        city_name=values["city_name"] or "",
        platform=values["platform"] or "",
        version=values["version"] or "",
        contact=values["contact"] or "",
        last_changed_address_or_port=values["last_changed_address_or_port"] or "",
        first_seen=values["first_seen"] or "",
        exit_policy=values["exit_policy"] or "null",
        exit_policy_summary=values["exit_policy_summary"] or "null",
        exit_policy_v6_summary=values["exit_policy_v6_summary"] or "null",
        record_last_seen=values["record_last_seen"],
    )


class SqlAlchemyRelayStore:
    """Relay history store: dictionary tables, relay rows and address history."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # Dictionary tables -------------------------------------------------------

    def get_or_create_value_id(self, value_class: ValueClass, text: str) -> int:
        table = VALUE_TABLES[value_class]
        stmt = select(table.c.id).where(table.c.value == text)
        existing = self.session.execute(stmt).scalar_one_or_none()
        if existing is not None:
            return existing
        result = self.session.execute(insert(table).values(value=text))
        return result.inserted_primary_key[0]

    def get_or_create_country_id(self, code: str, name: str) -> int:
        stmt = (
            select(country_table.c.id)
            .where(country_table.c.code == code)
            .where(country_table.c.name == name)
        )
        existing = self.session.execute(stmt).scalar_one_or_none()
        if existing is not None:
            return existing
        result = self.session.execute(insert(country_table).values(code=code, name=name))
        return result.inserted_primary_key[0]

    # Relay rows --------------------------------------------------------------

    def find_latest_state(self, fingerprint: str, *, as_of: Dlts) -> LatestState | None:
        stmt = (
            _latest_state_select()
            .where(fingerprint_table.c.value == fingerprint)
            .where(relay_table.c.record_time_inserted <= as_of)
            .order_by(relay_table.c.record_time_inserted.desc(), relay_table.c.id.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        return _to_latest_state(row) if row is not None else None

    def load_latest_states(self, *, as_of: Dlts) -> dict[str, LatestState]:
        """Return, per fingerprint, the newest row inserted at or before ``as_of``."""

        ranked = (
            select(
                relay_table.c.id,
                func.row_number()
                .over(
                    partition_by=relay_table.c.fingerprint_id,
                    order_by=(relay_table.c.record_time_inserted.desc(), relay_table.c.id.desc()),
                )
                .label("position"),
            )
            .where(relay_table.c.record_time_inserted <= as_of)
            .subquery()
        )
        latest_ids = select(ranked.c.id).where(ranked.c.position == 1)
        stmt = _latest_state_select().where(relay_table.c.id.in_(latest_ids))
        states: dict[str, LatestState] = {}
        for row in self.session.execute(stmt):
            state = _to_latest_state(row)
            states[state.fingerprint] = state
        return states

    def insert_relay(self, row: RelayRow) -> int:
        result = self.session.execute(
            insert(relay_table).values(
                fingerprint_id=row.fingerprint_id,
                country_id=row.country_id,
                region_id=row.region_id,
                city_id=row.city_id,
                platform_id=row.platform_id,
                version_id=row.version_id,
                contact_id=row.contact_id,
                exit_policy_id=row.exit_policy_id,
                exit_policy_summary_id=row.exit_policy_summary_id,
                exit_policy_v6_summary_id=row.exit_policy_v6_summary_id,
                nickname=row.nickname,
                last_changed_address_or_port=row.last_changed_address_or_port,
                first_seen=row.first_seen,
                record_time_inserted=row.record_time_inserted,
                record_last_seen=row.record_last_seen,
                flags=row.flags,
                details=row.details,
            )
        )
        return result.inserted_primary_key[0]

    def advance_relay_freshness(self, row_id: int, dlts: Dlts) -> None:
        stmt = (
            update(relay_table)
            .where(relay_table.c.id == row_id)
            .where(relay_table.c.record_last_seen < dlts)
            .values(record_last_seen=dlts)
        )
        self.session.execute(stmt)

    # Address history ---------------------------------------------------------

    def find_address(
        self, fingerprint_id: int, role: AddressRole, address: str
    ) -> AddressHistory | None:
        stmt = (
            select(relay_address_table)
            .where(relay_address_table.c.fingerprint_id == fingerprint_id)
            .where(relay_address_table.c.role == role)
            .where(relay_address_table.c.address == address)
        )
        row = self.session.execute(stmt).first()
        if row is None:
            return None
        values = row._mapping  # noqa: SLF001
        return AddressHistory(
            id=values["id"],
            fingerprint_id=values["fingerprint_id"],
            role=AddressRole(values["role"]),
            address=values["address"],
            record_time_inserted=values["record_time_inserted"],
            record_last_seen=values["record_last_seen"],
        )

    def insert_address(
        self, fingerprint_id: int, role: AddressRole, address: str, dlts: Dlts
    ) -> int:
        result = self.session.execute(
            insert(relay_address_table).values(
                fingerprint_id=fingerprint_id,
                role=role,
                address=address,
                record_time_inserted=dlts,
                record_last_seen=dlts,
            )
        )
        return result.inserted_primary_key[0]

    def advance_address_freshness(self, history_id: int, dlts: Dlts) -> None:
        stmt = (
            update(relay_address_table)
            .where(relay_address_table.c.id == history_id)
            .where(relay_address_table.c.record_last_seen < dlts)
            .values(record_last_seen=dlts)
        )
        self.session.execute(stmt)


class SqlAlchemyImportLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record_import(
        self,
        *,
        version: str,
        build_revision: str,
        relays_published: str,
        bridges_published: str,
        dlts: Dlts,
    ) -> None:
        self.session.execute(
            insert(consensus_import_table).values(
                version=version,
                build_revision=build_revision,
                relays_published=relays_published,
                bridges_published=bridges_published,
                dlts=dlts,
            )
        )

    def latest_dlts(self) -> Dlts | None:
        stmt = select(func.max(consensus_import_table.c.dlts))
        return self.session.execute(stmt).scalar_one_or_none()
