"""
Applies inline fixes from the issue list.

Each fix writes one row through the store and, only once the write
succeeds, merges the same change into the in-memory snapshot. The caller
then recomputes issues, and the fixed issue drops out on its own.
"""

import math
from typing import Any, Iterable

import structlog

from .errors import DataQualityError, NotificationError, RemediationError
from .parsers import is_blank
from .quality import Issue, RemediationKind

logger = structlog.get_logger()

NUMERIC_FIELDS = {
    "amount_per_packet": float,
    "number_packets": int,
    "shelf_life_years": int,
    "retail_price": float,
    "days_to_germinate": int,
    "days_to_bloom": int,
    "scoville": int,
}


def coerce_value(column: str, value: Any) -> Any:
    """Blank input clears the field; numeric columns are parsed."""
    if is_blank(value):
        return None
    caster = NUMERIC_FIELDS.get(column)
    if caster is None:
        return value.strip() if isinstance(value, str) else value
    try:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(value)
        return caster(number)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{column} must be a number, got {value!r}") from None


class RemediationDispatcher:
    """
    Routes an issue's remediation to the right collaborator.

    Collaborators are injected:
    - store: update(entity, id, patch) and insert(entity, row)
    - snapshot: apply_patch(), append_rows() and an `overrides` map
    - override_store: upsert(kind, key, seed_ids, acknowledged, note)
    - task_client: create_task(title, notes, metadata), optional
    """

    def __init__(self, store, snapshot, override_store, task_client=None):
        self.store = store
        self.snapshot = snapshot
        self.override_store = override_store
        self.task_client = task_client

    def build_patch(self, issue: Issue, values: dict[str, Any] | None = None) -> dict:
        """The minimal patch for an edit_fields or set_fields remediation."""
        remediation = self._remediation(issue)

        if remediation.kind == RemediationKind.SET_FIELDS:
            return dict(remediation.patch)

        if remediation.kind != RemediationKind.EDIT_FIELDS:
            raise ValueError(f"{issue.key} has no field patch ({remediation.kind.value})")

        values = values or {}
        unknown = set(values) - set(remediation.fields)
        if unknown:
            raise ValueError(f"{issue.key} cannot edit {', '.join(sorted(unknown))}")
        return {f: coerce_value(f, values.get(f)) for f in remediation.fields if f in values}

    def apply_fields(self, issue: Issue, values: dict[str, Any] | None = None) -> dict:
        """Write a field patch and mirror it locally. Returns the patch."""
        remediation = self._remediation(issue)
        patch = self.build_patch(issue, values)
        if not patch:
            raise ValueError(f"{issue.key}: nothing to save")

        try:
            self.store.update(remediation.entity, remediation.entity_id, patch)
        except DataQualityError as exc:
            logger.warning("remediation.failed", issue=issue.key, error=str(exc))
            raise RemediationError(str(exc), issue_key=issue.key) from exc

        self.snapshot.apply_patch(remediation.entity, remediation.entity_id, patch)
        logger.info(
            "remediation.applied",
            issue=issue.key,
            entity=remediation.entity,
            entity_id=remediation.entity_id,
            fields=sorted(patch),
        )
        return patch

    def toggle_override(self, issue: Issue, note: str | None = None):
        """Flip the acknowledgment behind a duplicate-name issue."""
        remediation = self._remediation(issue, RemediationKind.TOGGLE_OVERRIDE)
        record = self.override_store.upsert(
            remediation.override_kind,
            remediation.override_key,
            issue.seed_ids,
            not issue.acknowledged,
            note,
        )
        self.snapshot.overrides[record.key] = record
        return record

    def attach_media(self, issue: Issue, paths: Iterable[str]) -> list[dict]:
        """Record already-uploaded pictures for the issue's seed."""
        remediation = self._remediation(issue, RemediationKind.ATTACH_MEDIA)
        rows = []
        for path in paths:
            if is_blank(path):
                continue
            try:
                rows.append(
                    self.store.insert(
                        remediation.entity,
                        {"seed_id": remediation.entity_id, "image_path": path},
                    )
                )
            except DataQualityError as exc:
                logger.warning("remediation.failed", issue=issue.key, error=str(exc))
                # keep whatever rows did land so the snapshot matches the store
                if rows:
                    self.snapshot.append_rows(remediation.entity, rows)
                raise RemediationError(str(exc), issue_key=issue.key) from exc

        if rows:
            self.snapshot.append_rows(remediation.entity, rows)
            logger.info("remediation.applied", issue=issue.key, images=len(rows))
        return rows

    def notify(self, issue: Issue) -> bool:
        """
        Open a tracker task for the issue. Best effort: failures are logged
        and reported as False, never raised.
        """
        remediation = self._remediation(issue, RemediationKind.NOTIFY)
        if self.task_client is None:
            logger.warning("remediation.notify_skipped", issue=issue.key)
            return False

        try:
            self.task_client.create_task(
                title=issue.label,
                notes=f"Data quality: add a {remediation.entity} row for this seed.",
                metadata={
                    "issue": issue.key,
                    "seed_id": remediation.entity_id,
                    "priority": "Medium",
                },
            )
        except (NotificationError, ValueError) as exc:
            logger.warning("remediation.notify_failed", issue=issue.key, error=str(exc))
            return False

        logger.info("remediation.notified", issue=issue.key)
        return True

    def _remediation(self, issue: Issue, kind: RemediationKind | None = None):
        remediation = issue.remediation
        if remediation is None:
            raise ValueError(f"{issue.key} has no remediation")
        if kind is not None and remediation.kind != kind:
            raise ValueError(
                f"{issue.key} expects {remediation.kind.value}, not {kind.value}"
            )
        return remediation
