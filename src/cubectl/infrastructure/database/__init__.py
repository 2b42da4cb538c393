"""SQLite storage for the sandbox application via SQLAlchemy Core."""

from cubectl.infrastructure.database.engine import create_db_engine, init_database
from cubectl.infrastructure.database.schema import (
    app_info,
    calc_status,
    dimensions,
    hierarchy,
    member_list_items,
    member_lists,
    members,
    metadata,
    operation_log,
)

__all__ = [
    "app_info",
    "calc_status",
    "create_db_engine",
    "dimensions",
    "hierarchy",
    "init_database",
    "member_list_items",
    "member_lists",
    "members",
    "metadata",
    "operation_log",
]
