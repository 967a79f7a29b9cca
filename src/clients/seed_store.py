"""
Relational store client for the seed catalog.

THIS FILE CONTAINS THE CLIENT'S SCHEMA:
- seeds, inventory, costs_and_pricing, seed_images: owned by the CRUD grids
- data_quality_overrides: written only by the data quality page

Bulk reads come back as pandas DataFrames (pd.read_sql); writes are
single-row statements scoped by primary key. Every SQLAlchemy error is
re-raised as StoreError so callers never import SQLAlchemy.
"""

from typing import Any, Iterable

import pandas as pd
import structlog
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Engine,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    insert,
    select,
    update,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

try:
    from ..core.errors import StoreError
except ImportError:
    from core.errors import StoreError

logger = structlog.get_logger()

metadata = MetaData()

seeds = Table(
    "seeds",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("sku", String(32)),
    Column("name", String(255), nullable=False),
    Column("type", String(100)),
    Column("category", String(100)),
    Column("botanical_name", String(255)),
    Column("color", String(100)),
    Column("is_active", Boolean, default=True),
    Column("source", String(255)),
    Column("sunlight", String(100)),
    Column("plant_depth", String(50)),
    Column("plant_spacing", String(50)),
    Column("plant_height", String(50)),
    Column("days_to_germinate", Integer),
    Column("days_to_bloom", Integer),
    Column("scoville", Integer),
)

inventory = Table(
    "inventory",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("seed_id", Integer, ForeignKey("seeds.id"), nullable=False),
    Column("amount_per_packet", Float),
    Column("unit", String(50)),
    Column("number_packets", Integer),
    Column("date_received", Date),
    Column("shelf_life_years", Integer),
    Column("expiration_date", Date),
    Column("buy_more", Boolean, default=False),
    Column("notes", Text),
)

costs_and_pricing = Table(
    "costs_and_pricing",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("seed_id", Integer, ForeignKey("seeds.id"), nullable=False),
    Column("inventory_id", Integer, ForeignKey("inventory.id")),
    Column("retail_price", Float),
    Column("net_profit", Float),
)

seed_images = Table(
    "seed_images",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("seed_id", Integer, ForeignKey("seeds.id"), nullable=False),
    Column("image_path", String(1024), nullable=False),
)

data_quality_overrides = Table(
    "data_quality_overrides",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("kind", String(50), nullable=False),
    Column("key", String(255), nullable=False),
    Column("seed_ids", Text),
    Column("acknowledged", Boolean, nullable=False, default=False),
    Column("note", Text),
    Column("updated_at", DateTime),
    UniqueConstraint("kind", "key", name="uq_data_quality_overrides_kind_key"),
)


class SeedStoreClient:
    """
    Query/update client over the catalog tables.

    Usage:
        store = SeedStoreClient("postgresql+psycopg://...")
        seeds_df = store.fetch_all("seeds", order_by="name")
        store.update("inventory", 12, {"buy_more": False})
    """

    def __init__(self, engine: Engine | str, echo: bool = False):
        self.engine = create_engine(engine, echo=echo) if isinstance(engine, str) else engine

    @classmethod
    def from_settings(cls, settings) -> "SeedStoreClient":
        return cls(settings.database_url, echo=settings.database_echo)

    def create_schema(self) -> None:
        """Create any missing tables (local/dev databases)."""
        metadata.create_all(self.engine)

    def _table(self, entity: str) -> Table:
        try:
            return metadata.tables[entity]
        except KeyError:
            raise StoreError(f"Unknown entity {entity!r}") from None

    def fetch_all(
        self,
        entity: str,
        where: dict[str, Any] | None = None,
        order_by: str | None = None,
    ) -> pd.DataFrame:
        """Bulk read of one table, optionally filtered by equality."""
        table = self._table(entity)
        stmt = select(table)
        for column, value in (where or {}).items():
            stmt = stmt.where(table.c[column] == value)
        if order_by:
            stmt = stmt.order_by(table.c[order_by])

        try:
            with self.engine.connect() as conn:
                return pd.read_sql(stmt, conn)
        except SQLAlchemyError as exc:
            logger.warning("store.fetch_failed", entity=entity, error=str(exc))
            raise StoreError(f"{entity}: {exc}") from exc

    def update(self, entity: str, entity_id: Any, patch: dict[str, Any]) -> dict:
        """Partial update of one row by id. Returns the updated row."""
        table = self._table(entity)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    update(table).where(table.c.id == entity_id).values(**patch)
                )
                if result.rowcount == 0:
                    raise StoreError(f"{entity}: no row with id {entity_id}")
                row = conn.execute(select(table).where(table.c.id == entity_id)).one()
        except SQLAlchemyError as exc:
            logger.warning(
                "store.update_failed", entity=entity, entity_id=entity_id, error=str(exc)
            )
            raise StoreError(f"{entity}: {exc}") from exc

        return dict(row._mapping)

    def insert(self, entity: str, row: dict[str, Any]) -> dict:
        """Insert one row. Returns it with its generated id."""
        table = self._table(entity)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(table).values(**row))
                new_id = result.inserted_primary_key[0]
        except SQLAlchemyError as exc:
            logger.warning("store.insert_failed", entity=entity, error=str(exc))
            raise StoreError(f"{entity}: {exc}") from exc

        return {**row, "id": new_id}

    def upsert(
        self, entity: str, row: dict[str, Any], conflict_columns: Iterable[str]
    ) -> dict:
        """Insert, or update the row matching `conflict_columns`."""
        table = self._table(entity)
        conflict_columns = list(conflict_columns)
        changes = {k: v for k, v in row.items() if k not in conflict_columns}

        dialect = self.engine.dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(table).values(**row)
        elif dialect == "sqlite":
            stmt = sqlite.insert(table).values(**row)
        else:
            return self._upsert_portable(table, row, conflict_columns, changes)

        stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=changes)
        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.warning("store.upsert_failed", entity=entity, error=str(exc))
            raise StoreError(f"{entity}: {exc}") from exc
        return row

    def _upsert_portable(
        self,
        table: Table,
        row: dict[str, Any],
        conflict_columns: list[str],
        changes: dict[str, Any],
    ) -> dict:
        match = [table.c[c] == row[c] for c in conflict_columns]
        try:
            with self.engine.begin() as conn:
                existing = conn.execute(select(table.c.id).where(*match)).first()
                if existing is None:
                    conn.execute(insert(table).values(**row))
                else:
                    conn.execute(update(table).where(*match).values(**changes))
        except SQLAlchemyError as exc:
            logger.warning("store.upsert_failed", entity=table.name, error=str(exc))
            raise StoreError(f"{table.name}: {exc}") from exc
        return row
