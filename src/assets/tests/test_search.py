"""Tests for asset and audit log filtering, sorting and pagination."""

from assets.factories import AssetFactory
from assets.services.search import (
    SORT_ASC,
    SORT_DESC,
    count_by,
    filter_assets,
    filter_audit_logs,
    paginate,
    resolve_field,
    sort_records,
)


def _tags(records):
    return [r["tagId"] for r in records]


class TestFilterAssets:
    def test_wildcards_return_everything(self, assets):
        result = filter_assets(assets, "", "all", "all", "all")
        assert result == assets

    def test_does_not_mutate_input(self, assets):
        before = list(assets)
        filter_assets(assets, "carrier", "active")
        assert assets == before

    def test_search_matches_tag_id_case_insensitively(self, assets):
        assert _tags(filter_assets(assets, "pj-b")) == ["PJ-B001"]

    def test_search_matches_brand_assignee_and_project(self, assets):
        assets[1]["assignedTo"] = {"name": "Priya Nair"}
        assets[2]["project"] = {"projectName": "Harbour View"}
        assert _tags(filter_assets(assets, "grundfos")) == ["PJ-A002"]
        assert _tags(filter_assets(assets, "priya")) == ["PJ-A002"]
        assert _tags(filter_assets(assets, "harbour")) == ["PJ-B001"]

    def test_search_supports_legacy_project_name(self):
        asset = AssetFactory(project=None, projectName="Legacy Plant")
        assert filter_assets([asset], "legacy") == [asset]

    def test_status_filter_is_case_insensitive(self, assets):
        assert _tags(filter_assets(assets, status="active")) == [
            "PJ-A001",
            "PJ-B001",
        ]

    def test_status_filter_is_exact(self, assets):
        assets[0]["status"] = "inactive"
        assert _tags(filter_assets(assets, status="active")) == ["PJ-B001"]

    def test_priority_and_type_filters_combine(self, assets):
        result = filter_assets(assets, priority="medium", asset_type="Chiller")
        assert _tags(result) == ["PJ-B001"]

    def test_filter_is_idempotent(self, assets):
        once = filter_assets(assets, "pj", "active", "all", "Chiller")
        twice = filter_assets(once, "pj", "active", "all", "Chiller")
        assert once == twice

    def test_no_match_returns_empty_list(self, assets):
        assert filter_assets(assets, "does-not-exist") == []


class TestFilterAuditLogs:
    def test_search_by_user_and_tag(self, audit_logs):
        assert len(filter_audit_logs(audit_logs, "dana")) == 2
        assert len(filter_audit_logs(audit_logs, "pj-a002")) == 1

    def test_action_and_resource_filters(self, audit_logs):
        assert len(filter_audit_logs(audit_logs, action="delete")) == 1
        assert len(filter_audit_logs(audit_logs, resource_type="AssetType")) == 1
        assert filter_audit_logs(audit_logs, action="all") == audit_logs


class TestSortRecords:
    def test_updated_at_descending(self, assets):
        result = sort_records(assets, "updatedAt", SORT_DESC)
        assert _tags(result) == ["PJ-B001", "PJ-A001", "PJ-A002"]

    def test_updated_at_ascending(self, assets):
        result = sort_records(assets, "updatedAt", SORT_ASC)
        assert _tags(result) == ["PJ-A002", "PJ-A001", "PJ-B001"]

    def test_dates_compare_chronologically_across_offsets(self):
        early = AssetFactory(tagId="EARLY", updatedAt="2024-01-01T10:00:00+02:00")
        late = AssetFactory(tagId="LATE", updatedAt="2024-01-01T09:30:00Z")
        assert _tags(sort_records([late, early], "updatedAt")) == ["EARLY", "LATE"]

    def test_text_sort_ignores_case(self):
        records = [{"brand": "trane"}, {"brand": "Carrier"}, {"brand": "daikin"}]
        result = sort_records(records, "brand")
        assert [r["brand"] for r in result] == ["Carrier", "daikin", "trane"]

    def test_missing_values_sort_last_in_both_directions(self, assets):
        assets[0]["updatedAt"] = None
        assert sort_records(assets, "updatedAt", SORT_ASC)[-1] is assets[0]
        assert sort_records(assets, "updatedAt", SORT_DESC)[-1] is assets[0]

    def test_dotted_path(self, assets):
        assets[0]["assignedTo"] = {"name": "Zed"}
        assets[1]["assignedTo"] = {"name": "Amy"}
        assets[2]["assignedTo"] = {"name": "Max"}
        result = sort_records(assets, "assignedTo.name")
        assert _tags(result) == ["PJ-A002", "PJ-B001", "PJ-A001"]

    def test_mixed_types_fall_back_to_text(self):
        records = [{"capacity": 10}, {"capacity": "5 kW"}]
        assert len(sort_records(records, "capacity")) == 2

    def test_empty_field_keeps_order(self, assets):
        assert sort_records(assets, "") == assets


class TestPaginate:
    def test_slices_pages(self):
        items, page, num_pages = paginate(list(range(30)), page=2, page_size=25)
        assert items == list(range(25, 30))
        assert (page, num_pages) == (2, 2)

    def test_out_of_range_page_is_clamped(self):
        items, page, _ = paginate(list(range(5)), page=9, page_size=2)
        assert page == 3
        assert items == [4]

    def test_invalid_page_defaults_to_first(self):
        _, page, _ = paginate([1, 2, 3], page="abc")
        assert page == 1

    def test_empty_list_has_one_page(self):
        assert paginate([]) == ([], 1, 1)


class TestCountBy:
    def test_counts_sorted_by_frequency(self, assets):
        assert count_by(assets, "assetType") == {"Chiller": 2, "Pump": 1}

    def test_missing_values_use_default(self):
        assert count_by([{"action": ""}, {}], "action") == {"Unknown": 2}

    def test_resolve_field_handles_non_dict(self):
        assert resolve_field({"assignedTo": "legacy"}, "assignedTo.name") is None
