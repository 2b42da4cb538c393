"""Shared pytest fixtures and test helpers for cubectl tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from cubectl.config.settings import CubeSettings
from cubectl.domain.dimensions import Dimension, canonical_key
from cubectl.domain.errors import EngineError
from cubectl.domain.members import NO_PARENT, Entity, Member
from cubectl.domain.pov import POV
from cubectl.domain.types import CalcStatus
from cubectl.infrastructure.application import Application
from cubectl.infrastructure.database.engine import init_database

SAMPLE_OUTLINE = """\
[application]
name = "Demo"
description = "Two scenarios, one group"

[[dimensions]]
name = "Scenario"
members = ["Actual", "Budget"]
[dimensions.lists]
Scenarios = ["Actual", "Budget"]

[[dimensions]]
name = "Year"
members = ["2023", "2024"]

[[dimensions]]
name = "Period"
members = ["Jan", "Feb", "Mar", "Apr"]
[dimensions.hierarchy]
Q1 = ["Jan", "Feb", "Mar"]
[dimensions.lists]
Quarter1 = ["Jan", "Feb", "Mar"]

[[dimensions]]
name = "Entity"
[dimensions.hierarchy]
Group = ["UK", "US"]
UK = ["London", "Leeds"]
US = ["Leeds", "Boston"]
[dimensions.default_parents]
Leeds = "UK"
[dimensions.lists]
Cities = ["UK.London", "US.Boston"]

[[dimensions]]
name = "Value"
members = ["<Entity Currency>", "USD"]

[[status]]
scenario = "Actual"
year = "2024"
period = "Jan"
entity = "Group.UK"
flags = ["needs_consolidation"]

[[status]]
scenario = "Actual"
year = "2024"
period = "Feb"
entity = "Group.UK"
flags = ["needs_consolidation", "needs_calculation"]

[[status]]
scenario = "Budget"
year = "2024"
period = "Jan"
entity = "UK.London"
value = "<Entity Currency>"
flags = ["locked"]
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "cubectl.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def outline_path(tmp_path: Path) -> Path:
    """The sample outline written to a temp file."""
    path = tmp_path / "outline.toml"
    path.write_text(SAMPLE_OUTLINE, encoding="utf-8")
    return path


@pytest.fixture
def application(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Application]:
    """Application over an empty sandbox database in a temp project."""
    monkeypatch.delenv("CUBECTL_CONFIG", raising=False)
    settings = CubeSettings.from_cli(root=tmp_path)
    app = Application(settings)
    try:
        yield app
    finally:
        app.close()


@pytest.fixture
def loaded_app(application: Application, outline_path: Path) -> Application:
    """Application with the sample outline loaded."""
    from cubectl.services.load import LoadService

    result = LoadService(application).load(outline_path)
    assert result.ok, result.error
    return application


VALUE_STATUS_ENTRY = """
[[status]]
scenario = "Actual"
year = "2024"
period = "Mar"
entity = "Group.US"
value = "USD"
flags = ["needs_consolidation"]
"""


@pytest.fixture
def value_status_app(application: Application, tmp_path: Path) -> Application:
    """Sample outline plus a status row recorded against the USD value."""
    from cubectl.services.load import LoadService

    path = tmp_path / "value-status.toml"
    path.write_text(SAMPLE_OUTLINE + VALUE_STATUS_ENTRY, encoding="utf-8")
    result = LoadService(application).load(path)
    assert result.ok, result.error
    return application


@pytest.fixture
def _isolated_app(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI uses an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_app")`` on command test
    classes.  The sample outline is written to ``outline.toml``.
    """
    monkeypatch.delenv("CUBECTL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "outline.toml").write_text(SAMPLE_OUTLINE, encoding="utf-8")


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeMetadata:
    """In-memory MetadataService.

    ``dimensions`` maps a dimension name to its member labels (ids are the
    positions).  ``parents`` maps ``(dimension, member)`` to the default
    parent label; ``lists`` maps ``(dimension, list)`` to
    ``(member, parent)`` label pairs.
    """

    def __init__(
        self,
        dimensions: dict[str, list[str]],
        *,
        parents: dict[tuple[str, str], str] | None = None,
        lists: dict[tuple[str, str], list[tuple[str, str | None]]] | None = None,
        statuses: dict[tuple[str, ...], CalcStatus] | None = None,
    ) -> None:
        self._names = list(dimensions)
        self._members = dimensions
        self._parents = parents or {}
        self._lists = lists or {}
        self.statuses = statuses or {}
        self.calls: list[tuple[str, Any]] = []

    def _dim(self, handle: int) -> str:
        return self._names[handle]

    def _index(self, dim: str, name: str | None) -> int:
        if name is None:
            return NO_PARENT
        keys = [canonical_key(m) for m in self._members[dim]]
        return keys.index(canonical_key(name))

    def dimension_id(self, name: str) -> int | None:
        self.calls.append(("dimension_id", name))
        keys = [canonical_key(n) for n in self._names]
        key = canonical_key(name)
        return keys.index(key) if key in keys else None

    def get_dimension(self, dimension_id: int) -> int:
        return dimension_id

    def dimension_name(self, handle: int) -> str:
        return self._dim(handle)

    def enum_dimensions(self) -> list[str]:
        return list(self._names)

    def member_id(self, handle: int, name: str) -> int | None:
        keys = [canonical_key(m) for m in self._members[self._dim(handle)]]
        key = canonical_key(name)
        return keys.index(key) if key in keys else None

    def member_label(self, handle: int, member_id: int) -> str | None:
        self.calls.append(("member_label", member_id))
        labels = self._members[self._dim(handle)]
        return labels[member_id] if 0 <= member_id < len(labels) else None

    def member_list_id(self, handle: int, list_name: str) -> int | None:
        names = [n for d, n in self._lists if d == self._dim(handle)]
        keys = [canonical_key(n) for n in names]
        key = canonical_key(list_name)
        return keys.index(key) if key in keys else None

    def expand_member_list(
        self, handle: int, list_id: int, top_id: int = NO_PARENT
    ) -> list[tuple[int, int]]:
        dim = self._dim(handle)
        name = [n for d, n in self._lists if d == dim][list_id]
        pairs = [
            (self._index(dim, member), self._index(dim, parent))
            for member, parent in self._lists[(dim, name)]
        ]
        if top_id != NO_PARENT:
            pairs = [p for p in pairs if p[1] == top_id or p[0] == top_id]
        return pairs

    def default_parent(self, handle: int, member_id: int) -> int:
        dim = self._dim(handle)
        parent = self._parents.get((dim, self._members[dim][member_id]))
        return self._index(dim, parent)

    def enum_members(self, handle: int) -> list[str]:
        return list(self._members[self._dim(handle)])

    def enum_member_lists(self, handle: int) -> list[str]:
        return [n for d, n in self._lists if d == self._dim(handle)]

    def consolidation_status(self, pov: POV) -> CalcStatus:
        self.calls.append(("consolidation_status", str(pov)))
        return self.statuses.get(tuple(pov.as_dict().values()), CalcStatus.OK)


class RecordingEngine:
    """CalculationEngine that records each call; fails on call ``fail_on`` (1-based)."""

    def __init__(self, *, fail_on: int | None = None, exc: Exception | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on = fail_on
        self.exc = exc

    def _record(self, *call: Any) -> None:
        if self.fail_on is not None and len(self.calls) + 1 == self.fail_on:
            raise self.exc or EngineError("engine exploded")
        self.calls.append(call)

    def allocate(self, *ids: int) -> None:
        self._record("allocate", *ids)

    def chart_logic(self, *args: Any) -> None:
        self._record("chart_logic", *args)

    def translate(self, *args: Any) -> None:
        self._record("translate", *args)

    def consolidate(self, *args: Any) -> None:
        self._record("consolidate", *args)

    def calc_epu(self, *args: Any) -> None:
        self._record("calc_epu", *args)


class ScriptedProgress:
    """ProgressSink that records events and cancels after ``cancel_after`` POVs."""

    def __init__(self, *, cancel_after: int | None = None, stop_after: int | None = None) -> None:
        self.events: list[tuple[Any, ...]] = []
        self.cancel_after = cancel_after
        self.stop_after = stop_after
        self.completed = 0

    @property
    def cancelled(self) -> bool:
        return self.cancel_after is not None and self.completed >= self.cancel_after

    def init_progress(self, label: str, total: int) -> None:
        self.events.append(("init", label, total))

    def iteration_complete(self) -> bool:
        self.completed += 1
        self.events.append(("step",))
        return self.stop_after is not None and self.completed >= self.stop_after

    def end_progress(self) -> None:
        self.events.append(("end",))

    def monitor_blocking_task(self) -> None:
        self.events.append(("monitor",))

    def blocking_task_complete(self) -> None:
        self.events.append(("monitor_done",))

    def count(self, name: str) -> int:
        return sum(1 for event in self.events if event[0] == name)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def member(dimension: str, member_id: int, name: str) -> Member:
    return Member(dimension=dimension, id=member_id, name=name)


def entity(
    member_id: int, name: str, parent_id: int = NO_PARENT, parent: str | None = None
) -> Entity:
    return Entity(
        dimension="Entity", id=member_id, name=name, parent_id=parent_id, parent_name=parent
    )


def dimension(name: str, dim_id: int = 0) -> Dimension:
    return Dimension(name=name, id=dim_id, handle=dim_id)


def sample_metadata(**kwargs: Any) -> FakeMetadata:
    """FakeMetadata shaped like the sample outline."""
    return FakeMetadata(
        {
            "Scenario": ["Actual", "Budget"],
            "Year": ["2023", "2024"],
            "Period": ["Jan", "Feb", "Mar", "Q1"],
            "Entity": ["Group", "UK", "US", "London", "Leeds"],
            "Value": ["<Entity Currency>", "USD"],
        },
        parents={
            ("Entity", "UK"): "Group",
            ("Entity", "US"): "Group",
            ("Entity", "London"): "UK",
            ("Entity", "Leeds"): "UK",
        },
        lists={
            ("Period", "Quarter1"): [("Jan", None), ("Feb", None), ("Mar", None)],
            ("Entity", "Cities"): [("London", "UK"), ("Leeds", "UK")],
        },
        **kwargs,
    )
