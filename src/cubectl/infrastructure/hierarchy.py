"""HierarchyGraph — NetworkX view of one dimension's parent/child tree.

Built lazily from the ``hierarchy`` table, one graph per dimension per
run.  Drives the system member lists ([Hierarchy], [Descendants],
[Children], [Base]) and default-parent lookups.  A member with several
parents (a shared entity) appears once per parent when walking.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import networkx as nx

from cubectl.domain.members import NO_PARENT

if TYPE_CHECKING:
    from sqlalchemy import Connection

type _Graph = nx.DiGraph


class HierarchyGraph:
    """Ordered parent → child graph for a single dimension."""

    def __init__(self, graph: _Graph) -> None:
        self._graph = graph

    @classmethod
    def from_edges(
        cls,
        member_ids: Iterable[int],
        edges: Iterable[tuple[int, int, bool]],
    ) -> HierarchyGraph:
        """Build from member ids (in display order) and ``(parent, child, default)`` edges.

        Edges must already be in position order; successor order follows
        insertion order.
        """
        g: _Graph = nx.DiGraph()
        for member_id in member_ids:
            g.add_node(member_id)
        for parent_id, child_id, is_default in edges:
            g.add_edge(parent_id, child_id, default=bool(is_default))
        return cls(g)

    @classmethod
    def load(cls, conn: Connection, dimension_id: int) -> HierarchyGraph:
        from sqlalchemy import select

        from cubectl.infrastructure.database.schema import hierarchy, members

        member_rows = conn.execute(
            select(members.c.id)
            .where(members.c.dimension_id == dimension_id)
            .order_by(members.c.id)
        )
        edge_rows = conn.execute(
            select(hierarchy.c.parent_id, hierarchy.c.child_id, hierarchy.c.is_default)
            .where(hierarchy.c.dimension_id == dimension_id)
            .order_by(hierarchy.c.parent_id, hierarchy.c.position)
        )
        return cls.from_edges(
            [row.id for row in member_rows],
            [(row.parent_id, row.child_id, bool(row.is_default)) for row in edge_rows],
        )

    @property
    def graph(self) -> _Graph:
        return self._graph

    def find_cycle(self) -> list[int] | None:
        """Member ids forming a cycle, or None for a valid tree."""
        try:
            cycle = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return None
        return [edge[0] for edge in cycle]

    def __contains__(self, member_id: object) -> bool:
        return member_id in self._graph

    def roots(self) -> list[int]:
        return [n for n in self._graph.nodes if self._graph.in_degree(n) == 0]

    def children(self, member_id: int) -> list[int]:
        return list(self._graph.successors(member_id))

    def parents(self, member_id: int) -> list[int]:
        return list(self._graph.predecessors(member_id))

    def is_base(self, member_id: int) -> bool:
        return self._graph.out_degree(member_id) == 0

    def default_parent(self, member_id: int) -> int:
        """The flagged default parent, else the first parent, else NO_PARENT."""
        parents = self.parents(member_id)
        for parent_id in parents:
            if self._graph.edges[parent_id, member_id].get("default"):
                return parent_id
        return parents[0] if parents else NO_PARENT

    def descendant_ids(self, member_id: int) -> set[int]:
        return set(nx.descendants(self._graph, member_id))

    # ------------------------------------------------------------------
    # Walks yielding (member_id, parent_id) pairs in preorder
    # ------------------------------------------------------------------

    def walk(self, member_id: int, parent_id: int = NO_PARENT) -> Iterator[tuple[int, int]]:
        yield member_id, parent_id
        for child_id in self._graph.successors(member_id):
            yield from self.walk(child_id, member_id)

    def _tops(self, top_id: int) -> list[tuple[int, int]]:
        if top_id == NO_PARENT:
            return [(root, NO_PARENT) for root in self.roots()]
        return [(top_id, self.default_parent(top_id))]

    def hierarchy(self, top_id: int = NO_PARENT) -> list[tuple[int, int]]:
        """Top (or every root) followed by all descendants."""
        pairs: list[tuple[int, int]] = []
        for member_id, parent_id in self._tops(top_id):
            pairs.extend(self.walk(member_id, parent_id))
        return pairs

    def descendants(self, top_id: int = NO_PARENT) -> list[tuple[int, int]]:
        """Like :meth:`hierarchy` without the top members themselves."""
        pairs: list[tuple[int, int]] = []
        for member_id, parent_id in self._tops(top_id):
            pairs.extend(list(self.walk(member_id, parent_id))[1:])
        return pairs

    def children_of(self, top_id: int = NO_PARENT) -> list[tuple[int, int]]:
        """Direct children of *top_id*; the roots when no top is given."""
        if top_id == NO_PARENT:
            return [(root, NO_PARENT) for root in self.roots()]
        return [(child_id, top_id) for child_id in self.children(top_id)]

    def base(self, top_id: int = NO_PARENT) -> list[tuple[int, int]]:
        """Leaf members beneath *top_id* (itself when it is a leaf)."""
        return [pair for pair in self.hierarchy(top_id) if self.is_base(pair[0])]
