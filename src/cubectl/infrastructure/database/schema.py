"""SQLAlchemy Core table definitions for the sandbox application.

Member and list names are matched case-insensitively through the
``*_key`` columns, which hold the lower-cased label.  ``-1`` stands for
"no parent" / "no value" in every id column that can be absent.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

app_info = Table(
    "app_info",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

dimensions = Table(
    "dimensions",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("name_key", Text, nullable=False, unique=True),
)

members = Table(
    "members",
    metadata,
    Column("dimension_id", Integer, ForeignKey("dimensions.id"), nullable=False),
    Column("id", Integer, nullable=False),
    Column("label", Text, nullable=False),
    Column("label_key", Text, nullable=False),
    Column("description", Text),
    PrimaryKeyConstraint("dimension_id", "id"),
    UniqueConstraint("dimension_id", "label_key"),
)

hierarchy = Table(
    "hierarchy",
    metadata,
    Column("dimension_id", Integer, ForeignKey("dimensions.id"), nullable=False),
    Column("parent_id", Integer, nullable=False),
    Column("child_id", Integer, nullable=False),
    Column("position", Integer, nullable=False),
    Column("is_default", Integer, default=0, server_default="0"),
    UniqueConstraint("dimension_id", "parent_id", "child_id"),
)

member_lists = Table(
    "member_lists",
    metadata,
    Column("dimension_id", Integer, ForeignKey("dimensions.id"), nullable=False),
    Column("id", Integer, nullable=False),
    Column("name", Text, nullable=False),
    Column("name_key", Text, nullable=False),
    Column("kind", Text, nullable=False),  # system | static
    PrimaryKeyConstraint("dimension_id", "id"),
    UniqueConstraint("dimension_id", "name_key"),
)

member_list_items = Table(
    "member_list_items",
    metadata,
    Column("dimension_id", Integer, nullable=False),
    Column("list_id", Integer, nullable=False),
    Column("position", Integer, nullable=False),
    Column("member_id", Integer, nullable=False),
    Column("parent_id", Integer, nullable=False),
)

calc_status = Table(
    "calc_status",
    metadata,
    Column("scenario_id", Integer, nullable=False),
    Column("year_id", Integer, nullable=False),
    Column("period_id", Integer, nullable=False),
    Column("entity_id", Integer, nullable=False),
    Column("parent_id", Integer, nullable=False),
    Column("value_id", Integer, nullable=False),
    Column("status", Integer, nullable=False, default=0, server_default="0"),
    PrimaryKeyConstraint(
        "scenario_id", "year_id", "period_id", "entity_id", "parent_id", "value_id"
    ),
)

operation_log = Table(
    "operation_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("operation", Text, nullable=False),
    Column("scenario_id", Integer, nullable=False),
    Column("year_id", Integer, nullable=False),
    Column("period_id", Integer, nullable=False),
    Column("entity_id", Integer, nullable=False),
    Column("parent_id", Integer, nullable=False),
    Column("value_id", Integer, nullable=False),
    Column("flags", Text),  # JSON object
    Column("created", Text, nullable=False),
)

Index("ix_hierarchy_parent", hierarchy.c.dimension_id, hierarchy.c.parent_id)
Index("ix_hierarchy_child", hierarchy.c.dimension_id, hierarchy.c.child_id)
Index("ix_list_items_list", member_list_items.c.dimension_id, member_list_items.c.list_id)
Index("ix_operation_log_operation", operation_log.c.operation)

# Tables cleared, child first, when an outline is reloaded.
APPLICATION_TABLES = (
    operation_log,
    calc_status,
    member_list_items,
    member_lists,
    hierarchy,
    members,
    dimensions,
    app_info,
)
