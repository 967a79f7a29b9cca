"""
Cross-references seeds, inventory, pricing and pictures into one issue list.

compute_issues() is the single entry point: it rebuilds the indices, runs
every rule and groups the result into the four fixed buckets. It holds no
state, so calling it again after any write is how fixed issues disappear.
"""

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from .indices import Records, build_indices
from .overrides import OverrideMap
from .quality import DataQualityChecker, Issue, IssueCategory

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 10

CATEGORY_ORDER = [
    IssueCategory.MEDIA,
    IssueCategory.DATA_HYGIENE,
    IssueCategory.INVENTORY,
    IssueCategory.PRICING,
]


@dataclass
class IssuePage:
    """The visible slice of one bucket."""

    category: IssueCategory
    items: list[Issue]
    total: int
    expanded: bool = False

    @property
    def hidden_count(self) -> int:
        return max(self.total - len(self.items), 0)

    @property
    def can_toggle(self) -> bool:
        """Whether a show more/show less control is needed."""
        return self.hidden_count > 0 or self.expanded


@dataclass
class IssueReport:
    """All issues from one pass, grouped by category."""

    buckets: dict[IssueCategory, list[Issue]] = field(
        default_factory=lambda: {c: [] for c in CATEGORY_ORDER}
    )

    @classmethod
    def from_issues(cls, issues: list[Issue]) -> "IssueReport":
        """Group issues by category, keeping emission order and the first of any repeated key."""
        report = cls()
        seen: set[str] = set()
        for issue in issues:
            if issue.key in seen:
                continue
            seen.add(issue.key)
            report.buckets[issue.category].append(issue)
        return report

    @property
    def total(self) -> int:
        return sum(len(items) for items in self.buckets.values())

    def issues(self) -> list[Issue]:
        """Flattened list in bucket order."""
        return [i for c in CATEGORY_ORDER for i in self.buckets[c]]

    def get(self, key: str) -> Issue | None:
        return next((i for i in self.issues() if i.key == key), None)

    def page(
        self,
        category: IssueCategory | str,
        limit: int = DEFAULT_PAGE_SIZE,
        expanded: bool = False,
    ) -> IssuePage:
        """First `limit` issues of a bucket, or all of them when expanded."""
        category = IssueCategory(category)
        items = self.buckets[category]
        visible = items if expanded else items[:limit]
        return IssuePage(
            category=category, items=list(visible), total=len(items), expanded=expanded
        )

    def as_dict(self) -> dict[str, list[Issue]]:
        """{"Media": [...], "Data Hygiene": [...], ...}"""
        return {c.value: list(self.buckets[c]) for c in CATEGORY_ORDER}

    def summary(self) -> dict:
        """Return a summary dict for display."""
        counts = {c.value: len(self.buckets[c]) for c in CATEGORY_ORDER}
        counts["total"] = self.total
        return counts


def compute_issues(
    seeds: Records,
    inventory: Records,
    pricing: Records,
    images: Records,
    overrides: OverrideMap | None = None,
    now: datetime | None = None,
    checker: DataQualityChecker | None = None,
) -> IssueReport:
    """
    Derive the full issue list from the current snapshot.

    Deterministic for identical inputs and `now`. Missing seeds, inventory
    or pricing collections produce an empty report rather than a partial one.
    """
    checker = checker or DataQualityChecker()
    index = build_indices(seeds, inventory, pricing, images, now=now)
    report = IssueReport.from_issues(checker.run(index, overrides))

    logger.debug("issues.computed", counts=report.summary())
    return report
