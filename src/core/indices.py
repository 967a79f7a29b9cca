"""
Lookup structures over the raw record collections.

Every checker reads from one EntityIndex instead of scanning the
collections again. Collections may be DataFrames, lists of dicts, or None.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable

import pandas as pd
import structlog

from .parsers import DateParser, NameNormalizer, is_blank

logger = structlog.get_logger()

Records = pd.DataFrame | Iterable[dict] | None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_records(collection: Records) -> list[dict] | None:
    """Convert a collection to a list of plain dicts. None stays None."""
    if collection is None:
        return None
    if isinstance(collection, pd.DataFrame):
        if collection.empty:
            return []
        # NaN in an integer column turns ids into floats; as_id() undoes that
        return collection.to_dict("records")
    return [dict(row) for row in collection if row is not None]


def as_id(value: Any) -> int | None:
    """Coerce an identifier to int (pandas hands back 3.0 for nullable ints)."""
    if is_blank(value):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class EntityIndex:
    """Seed-keyed lookups built from one snapshot of the store."""

    seeds: list[dict] = field(default_factory=list)
    images_by_seed: dict[int, list[dict]] = field(default_factory=dict)
    inventory_by_seed: dict[int, dict] = field(default_factory=dict)
    pricing_by_seed: dict[int, dict] = field(default_factory=dict)
    seeds_by_name: dict[str, list[dict]] = field(default_factory=dict)
    # False when seeds, inventory or pricing were never supplied
    complete: bool = True
    # "now" for time-based checks, naive UTC
    as_of: datetime = field(default_factory=_utcnow)

    @property
    def is_empty(self) -> bool:
        return not self.complete or not self.seeds

    def images_for(self, seed_id: int) -> list[dict]:
        return self.images_by_seed.get(seed_id, [])


def _group_by_seed(rows: list[dict] | None) -> dict[int, list[dict]]:
    grouped: dict[int, list[dict]] = {}
    for row in rows or []:
        seed_id = as_id(row.get("seed_id"))
        if seed_id is None:
            continue
        grouped.setdefault(seed_id, []).append(row)
    return grouped


def _last_by_seed(rows: list[dict] | None) -> dict[int, dict]:
    """One row per seed. Later rows overwrite earlier ones."""
    return {seed_id: group[-1] for seed_id, group in _group_by_seed(rows).items()}


def _with_usable_ids(seed_rows: list[dict]) -> list[dict]:
    usable = []
    for seed in seed_rows:
        if as_id(seed.get("id")) is None:
            logger.warning("indices.seed_id_invalid", id=seed.get("id"), name=seed.get("name"))
            continue
        usable.append(seed)
    return usable


def build_indices(
    seeds: Records,
    inventory: Records,
    pricing: Records,
    images: Records,
    now: datetime | None = None,
) -> EntityIndex:
    """
    Build the lookup maps the checkers need.

    Tolerates None or empty collections. A missing images collection only
    means "no pictures"; missing seeds, inventory or pricing marks the index
    incomplete and every checker then reports nothing. Seeds whose id is
    not an integer are logged and left out, since every issue key carries
    the seed id.
    """
    normalizer = NameNormalizer()

    seed_rows = to_records(seeds)
    inventory_rows = to_records(inventory)
    pricing_rows = to_records(pricing)
    image_rows = to_records(images)

    if seed_rows is not None:
        seed_rows = _with_usable_ids(seed_rows)

    seeds_by_name: dict[str, list[dict]] = {}
    for seed in seed_rows or []:
        key = normalizer.normalize(seed.get("name"))
        if key is None:
            continue
        seeds_by_name.setdefault(key, []).append(seed)

    return EntityIndex(
        seeds=seed_rows or [],
        images_by_seed=_group_by_seed(image_rows),
        inventory_by_seed=_last_by_seed(inventory_rows),
        pricing_by_seed=_last_by_seed(pricing_rows),
        seeds_by_name=seeds_by_name,
        complete=not (seed_rows is None or inventory_rows is None or pricing_rows is None),
        as_of=DateParser().parse(now) if now is not None else _utcnow(),
    )
