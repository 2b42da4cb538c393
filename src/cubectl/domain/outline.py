"""Application outline models — the TOML document loaded by ``cubectl load``.

Example::

    [application]
    name = "Demo"

    [[dimensions]]
    name = "Entity"
    [dimensions.hierarchy]
    Group = ["UK", "US"]
    UK = ["London", "Leeds"]
    [dimensions.default_parents]
    Leeds = "UK"
    [dimensions.lists]
    Cities = ["UK.London", "UK.Leeds"]

    [[status]]
    scenario = "Actual"
    year = "2024"
    period = "Jan"
    entity = "Group.UK"
    flags = ["needs_consolidation"]
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from cubectl.domain.dimensions import ALL_AXES, canonical_key
from cubectl.domain.specs import parse_member_spec
from cubectl.domain.types import CalcStatus


class ApplicationOutline(BaseModel):
    """[application] section."""

    model_config = {"frozen": True}

    name: str = "sandbox"
    description: str = ""


class DimensionOutline(BaseModel):
    """One [[dimensions]] entry.

    ``members`` lists members in display order; every parent and child
    named in ``hierarchy`` is added after them if not already listed.
    """

    model_config = {"frozen": True}

    name: str
    members: list[str] = Field(default_factory=list)
    hierarchy: dict[str, list[str]] = Field(default_factory=dict)
    default_parents: dict[str, str] = Field(default_factory=dict)
    lists: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "dimension name cannot be empty"
            raise ValueError(msg)
        return value.strip()

    @field_validator("members")
    @classmethod
    def _members_valid(cls, value: list[str]) -> list[str]:
        for label in value:
            if not label.strip() or any(ch in label for ch in ".{}"):
                msg = f"invalid member label {label!r}"
                raise ValueError(msg)
        return [label.strip() for label in value]

    @field_validator("hierarchy")
    @classmethod
    def _hierarchy_valid(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for parent, children in value.items():
            for label in (parent, *children):
                if not label.strip() or any(ch in label for ch in ".{}"):
                    msg = f"invalid member label {label!r} in hierarchy"
                    raise ValueError(msg)
        return value

    @field_validator("lists")
    @classmethod
    def _lists_parse(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        for name, specs in value.items():
            if not name.strip() or any(ch in name for ch in ".{}"):
                msg = f"invalid member list name {name!r}"
                raise ValueError(msg)
            for spec in specs:
                if parse_member_spec(spec).is_list:
                    msg = f"member list {name!r} cannot reference another list ({spec!r})"
                    raise ValueError(msg)
        return value

    def all_members(self) -> list[str]:
        """Members in id order: declared members, then hierarchy members."""
        seen: dict[str, str] = {}
        for label in self.members:
            seen.setdefault(canonical_key(label), label)
        for parent, children in self.hierarchy.items():
            for label in (parent, *children):
                seen.setdefault(canonical_key(label), label.strip())
        return list(seen.values())


class StatusOutline(BaseModel):
    """One [[status]] entry: calculation status of a POV."""

    model_config = {"frozen": True}

    scenario: str
    year: str
    period: str
    entity: str | None = None
    value: str | None = None
    flags: list[str] = Field(default_factory=list)

    @field_validator("flags")
    @classmethod
    def _flags_known(cls, value: list[str]) -> list[str]:
        CalcStatus.from_labels(value)
        return value

    @property
    def status(self) -> CalcStatus:
        return CalcStatus.from_labels(self.flags)


class Outline(BaseModel):
    """A complete application outline."""

    model_config = {"frozen": True}

    application: ApplicationOutline = Field(default_factory=ApplicationOutline)
    dimensions: list[DimensionOutline] = Field(default_factory=list)
    status: list[StatusOutline] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_dimensions(self) -> Outline:
        keys = [canonical_key(dim.name) for dim in self.dimensions]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            msg = f"duplicate dimensions: {', '.join(duplicates)}"
            raise ValueError(msg)
        if self.status:
            missing = [a.value for a in ALL_AXES[:3] if a.value.lower() not in keys]
            if missing:
                msg = f"status entries need dimensions {', '.join(missing)}"
                raise ValueError(msg)
        return self
