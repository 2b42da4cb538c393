"""Tests for outline models."""

from __future__ import annotations

import tomllib

import pytest
from pydantic import ValidationError

from cubectl.domain.outline import DimensionOutline, Outline
from cubectl.domain.types import CalcStatus
from tests.conftest import SAMPLE_OUTLINE


class TestOutline:
    def test_sample_parses(self) -> None:
        outline = Outline.model_validate(tomllib.loads(SAMPLE_OUTLINE))
        assert outline.application.name == "Demo"
        assert [d.name for d in outline.dimensions] == [
            "Scenario",
            "Year",
            "Period",
            "Entity",
            "Value",
        ]
        assert outline.status[1].status == (
            CalcStatus.NEEDS_CONSOLIDATION | CalcStatus.NEEDS_CALCULATION
        )

    def test_all_members_order(self) -> None:
        dim = DimensionOutline(
            name="Period",
            members=["Jan", "Feb"],
            hierarchy={"Q1": ["Jan", "Feb", "Mar"]},
        )
        assert dim.all_members() == ["Jan", "Feb", "Q1", "Mar"]

    def test_duplicate_dimensions(self) -> None:
        with pytest.raises(ValidationError, match="duplicate dimensions"):
            Outline(dimensions=[DimensionOutline(name="Year"), DimensionOutline(name="year")])

    def test_status_needs_core_dimensions(self) -> None:
        with pytest.raises(ValidationError, match="status entries need"):
            Outline.model_validate(
                {
                    "dimensions": [{"name": "Scenario"}],
                    "status": [{"scenario": "A", "year": "2024", "period": "Jan"}],
                }
            )

    @pytest.mark.parametrize("label", ["", "UK.London", "{List}"])
    def test_invalid_member_label(self, label: str) -> None:
        with pytest.raises(ValidationError, match="invalid member label"):
            DimensionOutline(name="Entity", members=[label])

    def test_invalid_hierarchy_label(self) -> None:
        with pytest.raises(ValidationError, match="in hierarchy"):
            DimensionOutline(name="Entity", hierarchy={"Group": ["U.K"]})

    def test_list_cannot_reference_list(self) -> None:
        with pytest.raises(ValidationError, match="cannot reference another list"):
            DimensionOutline(name="Period", lists={"Bad": ["{Quarter1}"]})

    def test_unknown_status_flag(self) -> None:
        with pytest.raises(ValidationError):
            Outline.model_validate(
                {
                    "dimensions": [{"name": "Scenario"}, {"name": "Year"}, {"name": "Period"}],
                    "status": [
                        {"scenario": "A", "year": "2024", "period": "Jan", "flags": ["dirty"]}
                    ],
                }
            )
