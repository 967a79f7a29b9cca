"""
Tests for the individual data quality rules.

Covers:
  - Media, duplicate/near-duplicate names and types
  - Collapsed required-field issues (SKU, Scoville)
  - Inventory and pricing attention
  - Checker ordering and custom rules
"""

from datetime import datetime

from core.indices import build_indices
from core.overrides import OverrideRecord
from core.quality import (
    DataQualityChecker,
    Issue,
    IssueCategory,
    RemediationKind,
    check_duplicate_names,
    check_inventory,
    check_missing_media,
    check_pricing,
    missing_required_fields,
    near_duplicate_names,
    near_duplicate_types,
)
from tests.helpers.catalog import NOW, clean_catalog, default_seeds, make_image, make_lot, make_price, make_seed


def index_for(catalog: dict, now: datetime = NOW):
    return build_indices(
        catalog["seeds"], catalog["inventory"], catalog["pricing"], catalog["images"], now=now
    )


def run(check, catalog: dict, overrides=None) -> list[Issue]:
    index = index_for(catalog)
    return check(index.seeds, index, overrides)


class TestCleanCatalog:
    def test_no_issues(self):
        index = index_for(clean_catalog(*default_seeds()))
        assert DataQualityChecker().run(index) == []


class TestMissingMedia:
    def test_seed_without_pictures(self):
        catalog = clean_catalog(*default_seeds())
        catalog["images"] = [i for i in catalog["images"] if i["seed_id"] != 2]

        issues = run(check_missing_media, catalog)

        assert [i.key for i in issues] == ["media-nopic-2"]
        issue = issues[0]
        assert issue.category == IssueCategory.MEDIA
        assert issue.label == 'Missing pictures - "Marigold"'
        assert issue.remediation.kind == RemediationKind.ATTACH_MEDIA
        assert issue.remediation.entity_id == 2


class TestDuplicateNames:
    def test_case_and_whitespace_variants_grouped(self):
        catalog = clean_catalog(make_seed(1, "Sunflower"), make_seed(2, " sunflower "))

        issues = run(check_duplicate_names, catalog)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.key == "dup-name-sunflower"
        assert issue.label == 'Duplicate seed name "Sunflower"'
        assert issue.hint == "IDs: 1, 2"
        assert issue.seed_ids == [1, 2]
        assert not issue.acknowledged
        assert issue.remediation.kind == RemediationKind.TOGGLE_OVERRIDE
        assert issue.remediation.override_key == "sunflower"

    def test_acknowledged_override_marks_ok(self):
        catalog = clean_catalog(make_seed(1, "Sunflower"), make_seed(2, "sunflower"))
        overrides = {
            "sunflower": OverrideRecord(kind="dup-name", key="sunflower", seed_ids=[1, 2], acknowledged=True)
        }

        issue = run(check_duplicate_names, catalog, overrides)[0]

        assert issue.acknowledged
        assert issue.label.endswith("(OK)")
        assert issue.remediation.action_label == "Unmark OK"

    def test_unacknowledged_override_is_not_ok(self):
        catalog = clean_catalog(make_seed(1, "Sunflower"), make_seed(2, "sunflower"))
        overrides = {
            "sunflower": OverrideRecord(kind="dup-name", key="sunflower", seed_ids=[1, 2], acknowledged=False)
        }

        issue = run(check_duplicate_names, catalog, overrides)[0]

        assert not issue.acknowledged
        assert not issue.label.endswith("(OK)")


class TestNearDuplicates:
    def test_near_duplicate_names(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"), make_seed(2, "Zinia"), make_seed(3, "Marigold"))

        issues = run(near_duplicate_names(), catalog)

        assert [i.key for i in issues] == ["near-name-6:zinnia|zinia"]
        assert issues[0].remediation is None
        assert issues[0].seed_ids == [1, 2]
        assert '"Zinnia" ↔ "Zinia"' in issues[0].label

    def test_hyphenated_names_keep_every_pair(self):
        catalog = clean_catalog(make_seed(1, "A-B"), make_seed(2, "A"), make_seed(3, "B-A"))

        issues = run(near_duplicate_names(), catalog)

        assert [i.key for i in issues] == [
            "near-name-3:a-b|a",
            "near-name-3:a-b|b-a",
            "near-name-1:a|b-a",
        ]

    def test_exact_duplicates_are_not_near_duplicates(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"), make_seed(2, "zinnia"))
        assert run(near_duplicate_names(), catalog) == []

    def test_near_duplicate_types(self):
        catalog = clean_catalog(
            make_seed(1, "Zinnia", type="Flower"),
            make_seed(2, "Basil", type="Herb"),
            make_seed(3, "Thyme", type="herbs"),
            make_seed(4, "Cosmos", type=" flower "),
        )

        issues = run(near_duplicate_types(), catalog)

        assert [i.key for i in issues] == ["near-type-4:herb|herbs"]
        assert issues[0].category == IssueCategory.DATA_HYGIENE


class TestMissingRequiredFields:
    def test_missing_fields_collapse_into_one_issue(self):
        catalog = clean_catalog(make_seed(1, "Zinnia", botanical_name=None, sunlight="  "))

        issues = run(missing_required_fields(), catalog)

        assert len(issues) == 1
        issue = issues[0]
        assert issue.key == "fields-1"
        assert issue.category == IssueCategory.DATA_HYGIENE
        assert issue.remediation.kind == RemediationKind.EDIT_FIELDS
        assert issue.remediation.entity == "seeds"
        assert issue.remediation.fields == ["botanical_name", "sunlight"]
        assert issue.hint == "Missing: botanical name, sunlight"

    def test_bad_sku_joins_the_same_issue(self):
        catalog = clean_catalog(make_seed(1, "Zinnia", source=None, sku="ZIN 1"))

        issue = run(missing_required_fields(), catalog)[0]

        assert issue.remediation.fields == ["source", "sku"]
        assert issue.remediation.initial == {"source": None, "sku": "ZIN 1"}
        assert issue.hint == "Missing: source; SKU: ZIN 1"

    def test_missing_sku(self):
        catalog = clean_catalog(make_seed(1, "Zinnia", sku=None))

        issue = run(missing_required_fields(), catalog)[0]

        assert issue.remediation.fields == ["sku"]
        assert issue.hint == "SKU: missing"

    def test_pepper_by_type_needs_scoville(self):
        catalog = clean_catalog(make_seed(1, "Ghost", type="Pepper", scoville=None))
        issue = run(missing_required_fields(), catalog)[0]
        assert issue.remediation.fields == ["scoville"]

    def test_pepper_by_name_needs_scoville(self):
        catalog = clean_catalog(make_seed(1, "Sweet Pepper Mix", type="Vegetable"))
        issue = run(missing_required_fields(), catalog)[0]
        assert issue.remediation.fields == ["scoville"]

    def test_rated_pepper_is_fine(self):
        catalog = clean_catalog(make_seed(1, "Ghost", type="pepper", scoville=1_000_000))
        assert run(missing_required_fields(), catalog) == []

    def test_zero_is_not_missing(self):
        catalog = clean_catalog(make_seed(1, "Zinnia", days_to_bloom=0))
        assert run(missing_required_fields(), catalog) == []


class TestInventoryChecks:
    def test_no_inventory_row_asks_for_task(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = []

        issues = run(check_inventory, catalog)

        assert [i.key for i in issues] == ["inv-none-1"]
        assert issues[0].remediation.kind == RemediationKind.NOTIFY

    def test_incomplete_lot(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = [make_lot(1, shelf_life_years=None)]

        issue = run(check_inventory, catalog)[0]

        assert issue.key == "inv-fill-1"
        assert issue.remediation.entity == "inventory"
        assert issue.remediation.entity_id == 101
        assert issue.remediation.fields == ["amount_per_packet", "number_packets", "shelf_life_years"]
        assert issue.remediation.initial["shelf_life_years"] is None
        assert issue.remediation.initial["number_packets"] == 10

    def test_expired_lot(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = [make_lot(1, expiration_date="2026-05-31")]

        issue = run(check_inventory, catalog)[0]

        assert issue.key == "inv-expired-1"
        assert issue.hint == "Expired on 2026-05-31"
        assert issue.remediation.kind == RemediationKind.SET_FIELDS
        assert issue.remediation.patch == {"expiration_date": None}

    def test_expiring_later_today_is_not_expired(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = [make_lot(1, expiration_date="2026-06-01T13:00:00")]
        assert run(check_inventory, catalog) == []

    def test_reorder_flag(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = [make_lot(1, buy_more=True)]

        issue = run(check_inventory, catalog)[0]

        assert issue.key == "inv-buymore-1"
        assert issue.remediation.patch == {"buy_more": False}
        assert issue.remediation.action_label == "Mark resolved"

    def test_one_lot_can_raise_several_issues(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["inventory"] = [
            make_lot(1, number_packets=None, expiration_date="2020-01-01", buy_more=True)
        ]

        keys = [i.key for i in run(check_inventory, catalog)]

        assert keys == ["inv-fill-1", "inv-expired-1", "inv-buymore-1"]


class TestPricingChecks:
    def test_no_pricing_row(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["pricing"] = []

        issues = run(check_pricing, catalog)

        assert [i.key for i in issues] == ["pr-none-1"]
        assert issues[0].category == IssueCategory.PRICING
        assert issues[0].remediation.kind == RemediationKind.NOTIFY

    def test_zero_and_missing_retail_price(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"), make_seed(2, "Basil"))
        catalog["pricing"] = [make_price(1, retail_price=0), make_price(2, retail_price=None)]

        issues = run(check_pricing, catalog)

        assert [i.key for i in issues] == ["pr-retail-1", "pr-retail-2"]
        assert issues[0].remediation.fields == ["retail_price"]
        assert issues[0].remediation.entity == "costs_and_pricing"
        assert issues[0].remediation.entity_id == 201

    def test_negative_profit_is_informational(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["pricing"] = [make_price(1, net_profit=-1.254)]

        issue = run(check_pricing, catalog)[0]

        assert issue.key == "pr-negative-1"
        assert issue.hint == "Current: -1.25"
        assert issue.remediation is None


class TestDataQualityChecker:
    def test_incomplete_index_yields_nothing(self):
        index = build_indices([make_seed(1, "Zinnia")], None, [], [])
        assert DataQualityChecker().run(index) == []

    def test_custom_check_runs_after_defaults(self):
        def inactive(seeds, index, overrides):
            return [
                Issue(key=f"inactive-{s['id']}", category=IssueCategory.DATA_HYGIENE, label="Inactive")
                for s in seeds
                if not s["is_active"]
            ]

        catalog = clean_catalog(make_seed(1, "Zinnia", is_active=False))
        catalog["images"] = []

        issues = DataQualityChecker().add_check(inactive).run(index_for(catalog))

        assert [i.key for i in issues] == ["media-nopic-1", "inactive-1"]

    def test_empty_checker(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["images"] = []
        assert DataQualityChecker(defaults=False).run(index_for(catalog)) == []

    def test_images_are_optional(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        index = build_indices(catalog["seeds"], catalog["inventory"], catalog["pricing"], None, now=NOW)
        assert [i.key for i in DataQualityChecker().run(index)] == ["media-nopic-1"]

    def test_images_of_unknown_seeds_are_ignored(self):
        catalog = clean_catalog(make_seed(1, "Zinnia"))
        catalog["images"].append(make_image(99))
        assert DataQualityChecker().run(index_for(catalog)) == []
