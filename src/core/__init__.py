# Core data quality engine for the seed catalog
# Storage and task tracking are injected collaborators (see clients/)

from .distance import levenshtein, near_duplicate_pairs
from .errors import (
    DataQualityError,
    FetchError,
    NotificationError,
    RemediationError,
    StoreError,
)
from .indices import EntityIndex, build_indices
from .overrides import DUPLICATE_NAME, OverrideRecord, OverrideStore, is_acknowledged
from .parsers import DateParser, NameNormalizer, ProductCodeValidator, is_blank
from .quality import (
    DataQualityChecker,
    Issue,
    IssueCategory,
    Remediation,
    RemediationKind,
)
from .reconciliation import IssuePage, IssueReport, compute_issues
from .remediation import RemediationDispatcher

__all__ = [
    "levenshtein",
    "near_duplicate_pairs",
    "DataQualityError",
    "FetchError",
    "NotificationError",
    "RemediationError",
    "StoreError",
    "EntityIndex",
    "build_indices",
    "DUPLICATE_NAME",
    "OverrideRecord",
    "OverrideStore",
    "is_acknowledged",
    "DateParser",
    "NameNormalizer",
    "ProductCodeValidator",
    "is_blank",
    "DataQualityChecker",
    "Issue",
    "IssueCategory",
    "Remediation",
    "RemediationKind",
    "IssuePage",
    "IssueReport",
    "compute_issues",
    "RemediationDispatcher",
]
