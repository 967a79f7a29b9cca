"""
Tests for the Notion task tracker client.
"""

from datetime import date
from unittest.mock import MagicMock

import httpx
import pytest

from clients.notion_tasks import MAX_TEXT_LENGTH, NotionTaskClient, build_task_properties
from core.config import Settings
from core.errors import NotificationError


@pytest.fixture
def notion():
    client = MagicMock()
    client.pages.create.return_value = {"id": "page-123"}
    return client


class TestBuildTaskProperties:
    def test_title_only(self):
        assert build_task_properties("Add pricing") == {
            "Task": {"title": [{"text": {"content": "Add pricing"}}]}
        }

    def test_all_properties(self):
        properties = build_task_properties(
            "Add pricing",
            notes="Seed 3",
            goal_date=date(2026, 7, 1),
            priority="High",
            content_name="Catalog",
        )
        assert properties["Notes"]["rich_text"][0]["text"]["content"] == "Seed 3"
        assert properties["Goal Date"] == {"date": {"start": "2026-07-01"}}
        assert properties["Priority"] == {"select": {"name": "High"}}
        assert properties["Content Name"] == {"select": {"name": "Catalog"}}

    def test_long_text_is_truncated(self):
        properties = build_task_properties("t" * 3000, notes="n" * 5000)
        assert len(properties["Task"]["title"][0]["text"]["content"]) == MAX_TEXT_LENGTH
        assert len(properties["Notes"]["rich_text"][0]["text"]["content"]) == MAX_TEXT_LENGTH


class TestNotionTaskClient:
    def test_create_task(self, notion):
        tasks = NotionTaskClient("secret", "db-1", client=notion)

        page_id = tasks.create_task(
            'No pricing row - "Basil"',
            notes="Add a pricing row.",
            metadata={"issue": "pr-none-3", "seed_id": 3, "priority": "Medium"},
        )

        assert page_id == "page-123"
        kwargs = notion.pages.create.call_args.kwargs
        assert kwargs["parent"] == {"database_id": "db-1"}
        properties = kwargs["properties"]
        assert properties["Priority"] == {"select": {"name": "Medium"}}
        assert properties["Notes"]["rich_text"][0]["text"]["content"] == (
            "Add a pricing row.\nissue: pr-none-3 | seed_id: 3"
        )

    def test_transport_error_becomes_notification_error(self, notion):
        notion.pages.create.side_effect = httpx.ConnectError("connection refused")
        tasks = NotionTaskClient("secret", "db-1", client=notion)

        with pytest.raises(NotificationError, match="connection refused"):
            tasks.create_task("Add pricing")

    def test_database_id_required(self, notion):
        with pytest.raises(ValueError):
            NotionTaskClient("secret", "", client=notion)

    def test_from_settings_requires_token(self):
        settings = Settings(notion_token="", notion_task_tracker_id="db-1")
        with pytest.raises(ValueError, match="NOTION_TOKEN"):
            NotionTaskClient.from_settings(settings)
