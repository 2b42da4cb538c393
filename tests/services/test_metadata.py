"""Tests for MetadataQueryService against the sandbox application."""

from __future__ import annotations

import pytest

from cubectl.infrastructure.application import Application
from cubectl.services.metadata import MetadataQueryService


class TestListings:
    def test_dimensions(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).dimensions()
        assert result.ok
        assert result.data["application"] == "Demo"
        assert result.data["items"] == ["Scenario", "Year", "Period", "Entity", "Value"]

    def test_members_in_outline_order(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).members("entity")
        assert result.data["dimension"] == "Entity"
        assert result.data["items"] == ["Group", "UK", "US", "London", "Leeds", "Boston"]

    def test_members_filtered(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).members("Entity", pattern="l*")
        assert result.data["items"] == ["London", "Leeds"]
        assert result.data["filter"] == "l*"

    def test_lists_include_system_lists(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).lists("Entity")
        assert result.data["items"] == [
            "[Hierarchy]",
            "[Descendants]",
            "[Children]",
            "[Base]",
            "Cities",
        ]

    def test_unknown_dimension(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).members("Account")
        assert result.error is not None
        assert result.error.code == "UNKNOWN_DIMENSION"

    def test_nothing_loaded(self, application: Application) -> None:
        result = MetadataQueryService(application).dimensions()
        assert result.error is not None
        assert result.error.code == "NO_APPLICATION"


class TestExpand:
    def _names(self, app: Application, dimension: str, *specs: str) -> list[str]:
        result = MetadataQueryService(app).expand(dimension, list(specs))
        assert result.ok, result.error
        return [
            f"{item['parent']}.{item['name']}" if item.get("parent") else item["name"]
            for item in result.data["items"]
        ]

    def test_base_under_top(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Entity", "{Group.[Base]}") == [
            "UK.London",
            "UK.Leeds",
            "US.Leeds",
            "US.Boston",
        ]

    def test_hierarchy_from_roots(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Entity", "{[Hierarchy]}") == [
            "Group",
            "Group.UK",
            "UK.London",
            "UK.Leeds",
            "Group.US",
            "US.Leeds",
            "US.Boston",
        ]

    def test_descendants_exclude_top(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Entity", "{UK.[Descendants]}") == [
            "UK.London",
            "UK.Leeds",
        ]

    def test_children_without_top_are_roots(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Period", "{[Children]}") == ["Apr", "Q1"]

    def test_static_list_scoped_by_top(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Entity", "{Cities}") == ["UK.London", "US.Boston"]
        assert self._names(loaded_app, "Entity", "{UK.Cities}") == ["UK.London"]

    def test_flagged_default_parent(self, loaded_app: Application) -> None:
        assert self._names(loaded_app, "Entity", "Leeds", "US.Leeds") == [
            "UK.Leeds",
            "US.Leeds",
        ]

    def test_non_hierarchical_items_have_no_parent(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).expand("Period", ["{Quarter1}", "Apr"])
        assert [item["name"] for item in result.data["items"]] == ["Jan", "Feb", "Mar", "Apr"]
        assert "parent_id" not in result.data["items"][0]

    @pytest.mark.parametrize("spec", ["Dec", "{Quarter9}", "UK.London.City", "{Q1"])
    def test_bad_spec(self, loaded_app: Application, spec: str) -> None:
        result = MetadataQueryService(loaded_app).expand("Period", [spec])
        assert result.error is not None
        assert result.error.code == "INVALID_SPEC"


class TestStatus:
    def test_per_entity(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).status(
            {"Scenario": ["Actual"], "Year": ["2024"], "Period": ["{Quarter1}"], "Entity": ["UK"]}
        )
        assert result.ok, result.error
        assert result.data["axes"] == ["Scenario", "Year", "Period", "Entity"]
        assert [item["status"] for item in result.data["items"]] == [
            ["needs_consolidation"],
            ["needs_calculation", "needs_consolidation"],
            ["ok"],
        ]
        assert result.data["items"][0]["pov"]["entity"] == "Group.UK"

    def test_with_value(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).status(
            {
                "scenario": ["Budget"],
                "year": ["2024"],
                "period": ["Jan"],
                "entity": ["UK.London"],
                "value": ["<Entity Currency>"],
            }
        )
        assert result.data["items"][0]["status"] == ["locked"]

    def test_value_inherits_value_less_status(self, loaded_app: Application) -> None:
        result = MetadataQueryService(loaded_app).status(
            {
                "Scenario": ["Actual"],
                "Year": ["2024"],
                "Period": ["Feb"],
                "Entity": ["UK"],
                "Value": ["USD"],
            }
        )
        assert result.ok, result.error
        assert result.data["items"][0]["status"] == ["needs_calculation", "needs_consolidation"]

    def test_value_less_merges_value_rows(self, value_status_app: Application) -> None:
        result = MetadataQueryService(value_status_app).status(
            {"Scenario": ["Actual"], "Year": ["2024"], "Period": ["Mar"], "Entity": ["US"]}
        )
        assert result.data["items"][0]["status"] == ["needs_consolidation"]
