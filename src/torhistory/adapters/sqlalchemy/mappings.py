"""SQLAlchemy Core tables for the relay history store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

from torhistory.domain.model import AddressRole, ValueClass

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

DLTS_LENGTH: Final[int] = 14

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(table_name)s_%(column_0_N_name)s",
        "uq": "uq_%(table_name)s_%(column_0_N_name)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)


def _value_table(name: str) -> Table:
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("value", Text, nullable=False, unique=True),
    )


# Dictionary tables -----------------------------------------------------------

fingerprint_table = _value_table("fingerprint")
region_table = _value_table("region")
city_table = _value_table("city")
platform_table = _value_table("platform")
version_table = _value_table("version")
contact_table = _value_table("contact")
exit_policy_table = _value_table("exit_policy")
exit_policy_summary_table = _value_table("exit_policy_summary")
exit_policy_v6_summary_table = _value_table("exit_policy_v6_summary")

country_table = Table(
    "country",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(8), nullable=False),
    Column("name", String, nullable=False),
    UniqueConstraint("code", "name"),
)

VALUE_TABLES: Final[dict[ValueClass, Table]] = {
    ValueClass.FINGERPRINT: fingerprint_table,
    ValueClass.REGION: region_table,
    ValueClass.CITY: city_table,
    ValueClass.PLATFORM: platform_table,
    ValueClass.VERSION: version_table,
    ValueClass.CONTACT: contact_table,
    ValueClass.EXIT_POLICY: exit_policy_table,
    ValueClass.EXIT_POLICY_SUMMARY: exit_policy_summary_table,
    ValueClass.EXIT_POLICY_V6_SUMMARY: exit_policy_v6_summary_table,
}


def _value_fk(name: str, table: Table) -> Column[int]:
    return Column(name, Integer, ForeignKey(table.c.id), nullable=True)


# History tables --------------------------------------------------------------

relay_table = Table(
    "relay",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fingerprint_id", Integer, ForeignKey(fingerprint_table.c.id), nullable=False),
    Column("country_id", Integer, ForeignKey(country_table.c.id), nullable=True),
    _value_fk("region_id", region_table),
    _value_fk("city_id", city_table),
    _value_fk("platform_id", platform_table),
    _value_fk("version_id", version_table),
    _value_fk("contact_id", contact_table),
    _value_fk("exit_policy_id", exit_policy_table),
    _value_fk("exit_policy_summary_id", exit_policy_summary_table),
    _value_fk("exit_policy_v6_summary_id", exit_policy_v6_summary_table),
    Column("nickname", String, nullable=False, default=""),
    Column("last_changed_address_or_port", String, nullable=False, default=""),
    Column("first_seen", String, nullable=False, default=""),
    Column("record_time_inserted", String(DLTS_LENGTH), nullable=False),
    Column("record_last_seen", String(DLTS_LENGTH), nullable=False),
    Column("flags", Text, nullable=False, default="[]"),
    Column("details", Text, nullable=False, default="{}"),
    Index(
        "ix_relay_fingerprint_id_record_time_inserted",
        "fingerprint_id",
        "record_time_inserted",
    ),
)

relay_address_table = Table(
    "relay_address",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("fingerprint_id", Integer, ForeignKey(fingerprint_table.c.id), nullable=False),
    Column(
        "role",
        Enum(
            AddressRole,
            native_enum=False,
            length=8,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
    ),
    Column("address", String, nullable=False),
    Column("record_time_inserted", String(DLTS_LENGTH), nullable=False),
    Column("record_last_seen", String(DLTS_LENGTH), nullable=False),
    UniqueConstraint("fingerprint_id", "role", "address"),
)

consensus_import_table = Table(
    "consensus_import",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("version", String, nullable=False),
    Column("build_revision", String, nullable=False, default=""),
    Column("relays_published", String, nullable=False),
    Column("bridges_published", String, nullable=False, default=""),
    Column("dlts", String(DLTS_LENGTH), nullable=False, index=True),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables without going through migrations."""

    log.info("Creating all tables")
    metadata.create_all(engine)
