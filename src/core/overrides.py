"""
Human-approved exceptions to data quality rules.

Currently one kind exists: "dup-name", meaning "these seeds share a name
on purpose". Records are keyed by (kind, key), where key is the
rule-specific string (the normalized seed name for dup-name).
"""

from datetime import datetime, timezone
from typing import Any, Iterable

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import DataQualityError, RemediationError
from .parsers import is_blank

logger = structlog.get_logger()

DUPLICATE_NAME = "dup-name"


class OverrideRecord(BaseModel):
    """One acknowledgment, as stored in data_quality_overrides."""

    kind: str = Field(description="Rule kind, e.g. dup-name")
    key: str = Field(description="Rule-specific key, e.g. the normalized name")
    seed_ids: list[int] = Field(
        default_factory=list, description="Seeds the acknowledgment covers"
    )
    acknowledged: bool = False
    note: str | None = None
    updated_at: datetime | None = None

    @field_validator("seed_ids", mode="before")
    @classmethod
    def _parse_seed_ids(cls, value: Any) -> list[int]:
        if is_blank(value):
            return []
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return sorted({int(v) for v in value})

    @classmethod
    def from_row(cls, row: dict) -> "OverrideRecord":
        """Build from a store row, treating NaN/NaT as missing."""
        clean = {}
        for k, v in row.items():
            if k == "seed_ids":
                clean[k] = v
            else:
                clean[k] = None if is_blank(v) else v
        if clean.get("acknowledged") is None:
            clean["acknowledged"] = False
        return cls.model_validate(clean)

    def to_row(self) -> dict:
        """Row shape for the store (seed_ids as comma-separated text)."""
        return {
            "kind": self.kind,
            "key": self.key,
            "seed_ids": ",".join(str(i) for i in self.seed_ids),
            "acknowledged": self.acknowledged,
            "note": self.note,
            "updated_at": self.updated_at,
        }


OverrideMap = dict[str, OverrideRecord]


def is_acknowledged(
    overrides: OverrideMap | None, key: str, seed_ids: Iterable[int]
) -> bool:
    """
    Whether a rule occurrence has been acknowledged.

    Looks the key up first. When no record carries the key (for example after
    a rename changed the normalized name), an acknowledged record covering
    exactly the same seeds still counts.
    """
    if not overrides:
        return False
    record = overrides.get(key)
    if record is not None:
        return record.acknowledged
    ids = sorted(set(seed_ids))
    return any(r.acknowledged and r.seed_ids == ids for r in overrides.values())


class OverrideStore:
    """
    Loads and persists override records through the storage client.

    The client needs fetch_all(entity, where=...) and
    upsert(entity, row, conflict_columns).
    """

    TABLE = "data_quality_overrides"

    def __init__(self, client, table: str | None = None):
        self.client = client
        self.table = table or self.TABLE

    def load(self, kind: str = DUPLICATE_NAME) -> OverrideMap:
        """
        Load all overrides of one kind, keyed by rule key.

        A failed load is logged and treated as "no overrides yet"; a row that
        does not validate is logged and skipped.
        """
        try:
            frame = self.client.fetch_all(self.table, where={"kind": kind})
        except DataQualityError as exc:
            logger.warning("overrides.load_failed", kind=kind, error=str(exc))
            return {}

        overrides: OverrideMap = {}
        for row in frame.to_dict("records"):
            try:
                record = OverrideRecord.from_row(row)
            except ValidationError as exc:
                logger.warning(
                    "overrides.row_invalid", kind=kind, key=row.get("key"), error=str(exc)
                )
                continue
            overrides[record.key] = record
        return overrides

    def upsert(
        self,
        kind: str,
        key: str,
        seed_ids: Iterable[int],
        acknowledged: bool,
        note: str | None = None,
    ) -> OverrideRecord:
        """Insert or update the record for (kind, key). Idempotent."""
        record = OverrideRecord(
            kind=kind,
            key=key,
            seed_ids=list(seed_ids),
            acknowledged=acknowledged,
            note=note,
            updated_at=datetime.now(timezone.utc),
        )
        try:
            self.client.upsert(self.table, record.to_row(), ("kind", "key"))
        except DataQualityError as exc:
            raise RemediationError(
                f"Could not save override for {key!r}: {exc}", issue_key=key
            ) from exc

        logger.info(
            "overrides.upserted", kind=kind, key=key, acknowledged=acknowledged
        )
        return record
