"""
Client-specific loader for the seed shop's catalog.

THIS FILE CONTAINS CLIENT-SPECIFIC LOGIC:
- Table names for the four catalog collections
- Seeds are read ordered by name, as the admin grids show them
- The in-memory snapshot that inline fixes patch after a successful write

To adapt for a new client:
1. Update ENTITY_TABLES to match their schema
2. The core indices, rules and aggregator can be reused as-is
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import pandas as pd
import structlog

try:
    from ..core.errors import FetchError, StoreError
    from ..core.indices import as_id
    from ..core.overrides import DUPLICATE_NAME, OverrideMap, OverrideStore
    from ..core.quality import DataQualityChecker
    from ..core.reconciliation import IssueReport, compute_issues
except ImportError:
    from core.errors import FetchError, StoreError
    from core.indices import as_id
    from core.overrides import DUPLICATE_NAME, OverrideMap, OverrideStore
    from core.quality import DataQualityChecker
    from core.reconciliation import IssueReport, compute_issues

logger = structlog.get_logger()

# snapshot attribute -> table
ENTITY_TABLES = {
    "seeds": "seeds",
    "inventory": "inventory",
    "pricing": "costs_and_pricing",
    "images": "seed_images",
}


@dataclass
class CatalogSnapshot:
    """The collections currently held in memory, plus the override map."""

    seeds: pd.DataFrame
    inventory: pd.DataFrame
    pricing: pd.DataFrame
    images: pd.DataFrame
    overrides: OverrideMap = field(default_factory=dict)

    def frame_for(self, table: str) -> pd.DataFrame:
        for attr, name in ENTITY_TABLES.items():
            if name == table:
                return getattr(self, attr)
        raise KeyError(table)

    def _set_frame(self, table: str, frame: pd.DataFrame) -> None:
        for attr, name in ENTITY_TABLES.items():
            if name == table:
                setattr(self, attr, frame)
                return
        raise KeyError(table)

    def apply_patch(self, table: str, entity_id: Any, patch: dict[str, Any]) -> None:
        """Merge a patch into the local copy of one row."""
        frame = self.frame_for(table).copy()
        mask = frame["id"].map(as_id) == as_id(entity_id)
        for column, value in patch.items():
            if column not in frame.columns:
                frame[column] = None
            # object dtype so None/bool/str fit any column
            frame[column] = frame[column].astype(object)
            frame.loc[mask, column] = value
        self._set_frame(table, frame)

    def append_rows(self, table: str, rows: list[dict]) -> None:
        frame = self.frame_for(table)
        self._set_frame(table, pd.concat([frame, pd.DataFrame(rows)], ignore_index=True))

    def compute(
        self, checker: DataQualityChecker | None = None, now: datetime | None = None
    ) -> IssueReport:
        """Derive the issue list from whatever is currently held."""
        return compute_issues(
            self.seeds,
            self.inventory,
            self.pricing,
            self.images,
            self.overrides,
            now=now,
            checker=checker,
        )


class SeedCatalogLoader:
    """
    Loads one consistent snapshot of the seed catalog.

    Either all four collections load or none do: a failure in any read
    raises a single FetchError naming every collection that failed, so the
    page never renders issues computed from a partial snapshot. Overrides
    are best-effort (see OverrideStore.load).
    """

    def __init__(self, store, override_store: OverrideStore | None = None):
        self.store = store
        self.override_store = override_store or OverrideStore(store)

    def load_all(self) -> CatalogSnapshot:
        """Load all collections and the duplicate-name overrides."""
        frames: dict[str, pd.DataFrame] = {}
        failures: dict[str, str] = {}

        for attr, table in ENTITY_TABLES.items():
            try:
                frames[attr] = self._load(attr, table)
            except StoreError as exc:
                failures[table] = str(exc)

        if failures:
            logger.error("loader.fetch_failed", failures=failures)
            raise FetchError(failures)

        overrides = self.override_store.load(DUPLICATE_NAME)

        logger.info(
            "loader.loaded",
            seeds=len(frames["seeds"]),
            inventory=len(frames["inventory"]),
            pricing=len(frames["pricing"]),
            images=len(frames["images"]),
            overrides=len(overrides),
        )
        return CatalogSnapshot(overrides=overrides, **frames)

    def _load(self, attr: str, table: str) -> pd.DataFrame:
        if attr == "seeds":
            return self.store.fetch_all(table, order_by="name")
        return self.store.fetch_all(table)
