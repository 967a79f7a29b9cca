"""
Data quality rules for the seed catalog.

Each rule is a plain function (seeds, index, overrides) -> list[Issue].
DataQualityChecker holds an ordered list of rules and runs them; the order
only affects display order. Extend by adding custom rules via add_check().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from .distance import near_duplicate_pairs
from .indices import EntityIndex, as_id
from .overrides import DUPLICATE_NAME, OverrideMap, is_acknowledged
from .parsers import DateParser, NameNormalizer, ProductCodeValidator, is_blank


class IssueCategory(str, Enum):
    """The four fixed buckets issues are grouped into."""

    MEDIA = "Media"
    DATA_HYGIENE = "Data Hygiene"
    INVENTORY = "Inventory"
    PRICING = "Pricing & Profit"


class RemediationKind(str, Enum):
    ATTACH_MEDIA = "attach_media"  # accept new picture(s) for the seed
    TOGGLE_OVERRIDE = "toggle_override"  # flip an acknowledgment
    EDIT_FIELDS = "edit_fields"  # inline editor over `fields`
    SET_FIELDS = "set_fields"  # one-click fixed `patch`
    NOTIFY = "notify"  # open a task in the tracker


@dataclass
class Remediation:
    """How an issue can be fixed from the issue list."""

    kind: RemediationKind
    entity: str  # table the write goes to
    entity_id: Any = None
    fields: list[str] = field(default_factory=list)
    patch: dict[str, Any] = field(default_factory=dict)
    initial: dict[str, Any] = field(default_factory=dict)
    action_label: str = ""
    # toggle_override only
    override_kind: str | None = None
    override_key: str | None = None


@dataclass
class Issue:
    """A single defect found in the catalog."""

    key: str
    category: IssueCategory
    label: str
    hint: str | None = None
    seed_ids: list[int] = field(default_factory=list)
    remediation: Remediation | None = None
    acknowledged: bool = False

    @property
    def seed_id(self) -> int | None:
        return self.seed_ids[0] if len(self.seed_ids) == 1 else None


Check = Callable[[list[dict], EntityIndex, OverrideMap | None], list[Issue]]

REQUIRED_SEED_FIELDS = [
    "botanical_name",
    "source",
    "sunlight",
    "plant_depth",
    "plant_spacing",
    "days_to_germinate",
    "plant_height",
    "days_to_bloom",
]

INVENTORY_FILL_FIELDS = ["amount_per_packet", "number_packets", "shelf_life_years"]

_names = NameNormalizer()
_dates = DateParser()


def _name(seed: dict) -> str:
    name = seed.get("name")
    return "" if is_blank(name) else str(name)


def _value(row: dict, column: str) -> Any:
    value = row.get(column)
    return None if is_blank(value) else value


def _humanize(column: str) -> str:
    return "SKU" if column == "sku" else column.replace("_", " ")


def _pair_key(prefix: str, a: str, b: str) -> str:
    # length prefix fixes the split point, so names containing "-" or "|" cannot collide
    return f"{prefix}-{len(a)}:{a}|{b}"


# --- Media ---


def check_missing_media(
    seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
) -> list[Issue]:
    """Seeds with no pictures."""
    issues = []
    for seed in seeds:
        seed_id = as_id(seed.get("id"))
        if index.images_for(seed_id):
            continue
        issues.append(
            Issue(
                key=f"media-nopic-{seed_id}",
                category=IssueCategory.MEDIA,
                label=f'Missing pictures - "{_name(seed)}"',
                seed_ids=[seed_id],
                remediation=Remediation(
                    kind=RemediationKind.ATTACH_MEDIA,
                    entity="seed_images",
                    entity_id=seed_id,
                    action_label="Add pictures",
                ),
            )
        )
    return issues


# --- Data hygiene ---


def check_duplicate_names(
    seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
) -> list[Issue]:
    """Seeds sharing a name once trimmed and lowercased."""
    issues = []
    for norm, group in index.seeds_by_name.items():
        if len(group) < 2:
            continue
        ids = [as_id(s.get("id")) for s in group]
        ok = is_acknowledged(overrides, norm, ids)
        label = f'Duplicate seed name "{_name(group[0])}"'
        issues.append(
            Issue(
                key=f"dup-name-{norm}",
                category=IssueCategory.DATA_HYGIENE,
                label=f"{label} (OK)" if ok else label,
                hint=f"IDs: {', '.join(str(i) for i in ids)}",
                seed_ids=ids,
                acknowledged=ok,
                remediation=Remediation(
                    kind=RemediationKind.TOGGLE_OVERRIDE,
                    entity="data_quality_overrides",
                    override_kind=DUPLICATE_NAME,
                    override_key=norm,
                    initial={"acknowledged": ok},
                    action_label="Unmark OK" if ok else "Mark OK",
                ),
            )
        )
    return issues


def near_duplicate_names(max_distance: int = 2) -> Check:
    """Rule: distinct normalized names within `max_distance` edits."""

    def check(
        seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
    ) -> list[Issue]:
        issues = []
        for a, b, _ in near_duplicate_pairs(index.seeds_by_name, max_distance):
            first_a = index.seeds_by_name[a][0]
            first_b = index.seeds_by_name[b][0]
            issues.append(
                Issue(
                    key=_pair_key("near-name", a, b),
                    category=IssueCategory.DATA_HYGIENE,
                    label=(
                        "Possible near-duplicate names: "
                        f'"{_name(first_a)}" ↔ "{_name(first_b)}"'
                    ),
                    seed_ids=[as_id(first_a.get("id")), as_id(first_b.get("id"))],
                )
            )
        return issues

    return check


def near_duplicate_types(max_distance: int = 2) -> Check:
    """Rule: distinct normalized seed types within `max_distance` edits."""

    def check(
        seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
    ) -> list[Issue]:
        types = [t for t in (_names.normalize(s.get("type")) for s in seeds) if t]
        return [
            Issue(
                key=_pair_key("near-type", a, b),
                category=IssueCategory.DATA_HYGIENE,
                label=f'Possible near-duplicate types: "{a}" ↔ "{b}"',
            )
            for a, b, _ in near_duplicate_pairs(types, max_distance)
        ]

    return check


def _is_heat_rated(seed: dict) -> bool:
    return (
        _names.normalize(seed.get("type")) == "pepper"
        or "pepper" in _name(seed).lower()
    )


def missing_required_fields(
    sku_validator: ProductCodeValidator | None = None,
    required: list[str] | None = None,
) -> Check:
    """
    Rule: one collapsed issue per seed listing every blank required field,
    a malformed SKU, and a missing Scoville rating on peppers.
    """
    sku_validator = sku_validator or ProductCodeValidator()
    required = required or REQUIRED_SEED_FIELDS

    def check(
        seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
    ) -> list[Issue]:
        issues = []
        for seed in seeds:
            seed_id = as_id(seed.get("id"))
            missing = [f for f in required if is_blank(seed.get(f))]
            bad_sku = not sku_validator.is_valid(seed.get("sku"))
            no_heat = _is_heat_rated(seed) and is_blank(seed.get("scoville"))

            fields = list(missing)
            if bad_sku:
                fields.append("sku")
            if no_heat:
                fields.append("scoville")
            if not fields:
                continue

            hints = []
            blank = [f for f in fields if f != "sku"]
            if blank:
                hints.append("Missing: " + ", ".join(_humanize(f) for f in blank))
            if bad_sku:
                current = _value(seed, "sku")
                hints.append(f"SKU: {current}" if current is not None else "SKU: missing")

            issues.append(
                Issue(
                    key=f"fields-{seed_id}",
                    category=IssueCategory.DATA_HYGIENE,
                    label=f'Incomplete seed info - "{_name(seed)}"',
                    hint="; ".join(hints),
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.EDIT_FIELDS,
                        entity="seeds",
                        entity_id=seed_id,
                        fields=fields,
                        initial={f: _value(seed, f) for f in fields},
                        action_label="Save",
                    ),
                )
            )
        return issues

    return check


# --- Inventory ---


def check_inventory(
    seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
) -> list[Issue]:
    """Missing lots, incomplete lots, expired lots and reorder flags."""
    issues = []
    for seed in seeds:
        seed_id = as_id(seed.get("id"))
        name = _name(seed)
        lot = index.inventory_by_seed.get(seed_id)

        if lot is None:
            issues.append(
                Issue(
                    key=f"inv-none-{seed_id}",
                    category=IssueCategory.INVENTORY,
                    label=f'No inventory row - "{name}"',
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.NOTIFY,
                        entity="inventory",
                        entity_id=seed_id,
                        action_label="Create task",
                    ),
                )
            )
            continue

        lot_id = as_id(lot.get("id"))

        if any(is_blank(lot.get(f)) for f in INVENTORY_FILL_FIELDS):
            issues.append(
                Issue(
                    key=f"inv-fill-{seed_id}",
                    category=IssueCategory.INVENTORY,
                    label=f'Inventory fields missing - "{name}"',
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.EDIT_FIELDS,
                        entity="inventory",
                        entity_id=lot_id,
                        fields=list(INVENTORY_FILL_FIELDS),
                        initial={f: _value(lot, f) for f in INVENTORY_FILL_FIELDS},
                        action_label="Save",
                    ),
                )
            )

        expires = _dates.parse(lot.get("expiration_date"))
        if expires is not None and expires < index.as_of:
            issues.append(
                Issue(
                    key=f"inv-expired-{seed_id}",
                    category=IssueCategory.INVENTORY,
                    label=f'Expired inventory - "{name}"',
                    hint=f"Expired on {expires:%Y-%m-%d}",
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.SET_FIELDS,
                        entity="inventory",
                        entity_id=lot_id,
                        patch={"expiration_date": None},
                        action_label="Clear date",
                    ),
                )
            )

        if not is_blank(lot.get("buy_more")) and bool(lot.get("buy_more")):
            issues.append(
                Issue(
                    key=f"inv-buymore-{seed_id}",
                    category=IssueCategory.INVENTORY,
                    label=f'Buy more flagged - "{name}"',
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.SET_FIELDS,
                        entity="inventory",
                        entity_id=lot_id,
                        patch={"buy_more": False},
                        action_label="Mark resolved",
                    ),
                )
            )
    return issues


# --- Pricing & profit ---


def check_pricing(
    seeds: list[dict], index: EntityIndex, overrides: OverrideMap | None = None
) -> list[Issue]:
    """Missing pricing rows, missing/zero retail price, negative profit."""
    issues = []
    for seed in seeds:
        seed_id = as_id(seed.get("id"))
        name = _name(seed)
        price = index.pricing_by_seed.get(seed_id)

        if price is None:
            issues.append(
                Issue(
                    key=f"pr-none-{seed_id}",
                    category=IssueCategory.PRICING,
                    label=f'No pricing row - "{name}"',
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.NOTIFY,
                        entity="costs_and_pricing",
                        entity_id=seed_id,
                        action_label="Create task",
                    ),
                )
            )
            continue

        retail = _value(price, "retail_price")
        if retail is None or float(retail) == 0:
            issues.append(
                Issue(
                    key=f"pr-retail-{seed_id}",
                    category=IssueCategory.PRICING,
                    label=f'Retail price missing/0 - "{name}"',
                    seed_ids=[seed_id],
                    remediation=Remediation(
                        kind=RemediationKind.EDIT_FIELDS,
                        entity="costs_and_pricing",
                        entity_id=as_id(price.get("id")),
                        fields=["retail_price"],
                        initial={"retail_price": retail},
                        action_label="Save",
                    ),
                )
            )

        profit = _value(price, "net_profit")
        if profit is not None and float(profit) < 0:
            issues.append(
                Issue(
                    key=f"pr-negative-{seed_id}",
                    category=IssueCategory.PRICING,
                    label=f'Negative net profit - "{name}"',
                    hint=f"Current: {float(profit):.2f}",
                    seed_ids=[seed_id],
                )
            )
    return issues


class DataQualityChecker:
    """
    Runs an ordered list of rules over one EntityIndex.

    Default rules, in display order:
    - Missing media
    - Exact and near-duplicate names, near-duplicate types
    - Missing/invalid required fields
    - Inventory attention
    - Pricing & profit

    Extend by adding custom rules via add_check().
    """

    def __init__(
        self,
        near_duplicate_max_distance: int = 2,
        sku_validator: ProductCodeValidator | None = None,
        defaults: bool = True,
    ):
        self.near_duplicate_max_distance = near_duplicate_max_distance
        self.sku_validator = sku_validator or ProductCodeValidator()
        self._checks: list[Check] = []
        if defaults:
            self._add_default_checks()

    @classmethod
    def from_settings(cls, settings) -> "DataQualityChecker":
        return cls(
            near_duplicate_max_distance=settings.near_duplicate_max_distance,
            sku_validator=ProductCodeValidator(
                settings.sku_min_length, settings.sku_max_length
            ),
        )

    def _add_default_checks(self):
        """Add default rules."""
        distance = self.near_duplicate_max_distance
        self.add_check(check_missing_media)
        self.add_check(check_duplicate_names)
        self.add_check(near_duplicate_names(distance))
        self.add_check(near_duplicate_types(distance))
        self.add_check(missing_required_fields(self.sku_validator))
        self.add_check(check_inventory)
        self.add_check(check_pricing)

    def add_check(self, check_fn: Check) -> "DataQualityChecker":
        """Add a rule. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def run(
        self, index: EntityIndex, overrides: OverrideMap | None = None
    ) -> list[Issue]:
        """Run every rule and return their issues in emission order."""
        if index.is_empty:
            return []

        all_issues = []
        for check_fn in self._checks:
            all_issues.extend(check_fn(index.seeds, index, overrides))
        return all_issues
