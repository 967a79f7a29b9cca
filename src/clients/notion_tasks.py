"""
Notion task tracker client.

Data quality issues that need more than a quick patch (a seed with no
inventory or pricing row) open a task in the team's Notion tracker.
The tracker database has these properties:
  - Task (title)
  - Notes (rich text)
  - Goal Date (date)
  - Priority (select: High / Medium / Low)
  - Content Name (select)
"""

from datetime import date
from typing import Any, Literal

import httpx
import structlog
from notion_client import Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError

try:
    from ..core.errors import NotificationError
except ImportError:
    from core.errors import NotificationError

logger = structlog.get_logger()

# Notion rejects rich text blocks longer than this
MAX_TEXT_LENGTH = 2000

Priority = Literal["High", "Medium", "Low"]


def _text(value: Any) -> str:
    return str(value)[:MAX_TEXT_LENGTH]


def build_task_properties(
    title: str,
    notes: str | None = None,
    goal_date: date | str | None = None,
    priority: Priority | None = None,
    content_name: str | None = None,
) -> dict:
    """Page properties for one tracker task. Empty optionals are omitted."""
    properties: dict[str, Any] = {
        "Task": {"title": [{"text": {"content": _text(title)}}]},
    }
    if notes:
        properties["Notes"] = {
            "rich_text": [{"type": "text", "text": {"content": _text(notes)}}]
        }
    if goal_date:
        start = goal_date.isoformat() if isinstance(goal_date, date) else str(goal_date)
        properties["Goal Date"] = {"date": {"start": start}}
    if priority:
        properties["Priority"] = {"select": {"name": priority}}
    if content_name:
        properties["Content Name"] = {"select": {"name": content_name}}
    return properties


class NotionTaskClient:
    """Creates tasks in one Notion database."""

    # Metadata keys that map onto tracker properties; anything else is
    # appended to the notes so the task keeps its context.
    PROPERTY_KEYS = ("goal_date", "priority", "content_name")

    def __init__(self, token: str, database_id: str, client: Client | None = None):
        if not database_id:
            raise ValueError("A Notion task tracker database id is required")
        self.database_id = database_id
        self.client = client or Client(auth=token)

    @classmethod
    def from_settings(cls, settings) -> "NotionTaskClient":
        if not settings.notion_token:
            raise ValueError("NOTION_TOKEN is not set")
        return cls(settings.notion_token, settings.notion_task_tracker_id)

    def create_task(
        self,
        title: str,
        notes: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Create a task and return the new page id."""
        metadata = dict(metadata or {})
        options = {k: metadata.pop(k) for k in self.PROPERTY_KEYS if k in metadata}

        context = " | ".join(f"{k}: {v}" for k, v in metadata.items() if v is not None)
        if context:
            notes = f"{notes}\n{context}" if notes else context

        properties = build_task_properties(title, notes, **options)

        try:
            page = self.client.pages.create(
                parent={"database_id": self.database_id}, properties=properties
            )
        except (HTTPResponseError, RequestTimeoutError, httpx.HTTPError) as exc:
            logger.warning("notion.create_task_failed", title=title, error=str(exc))
            raise NotificationError(f"Could not create task {title!r}: {exc}") from exc

        logger.info("notion.task_created", title=title, page_id=page.get("id"))
        return page.get("id")
