"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from cubectl.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from cubectl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    # Listings print one name per line
    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(_extract_name(item) for item in items)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _extract_name(item: Any) -> str:
    if isinstance(item, dict):
        if "pov" in item:
            return "/".join(item["pov"].values())
        parent = item.get("parent")
        return f"{parent}.{item['name']}" if parent else str(item.get("name", ""))
    return str(item)


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="cube.ok")
    op = Text(f"  {result.op}", style="cube.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="cube.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="cube.id")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"
    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="cube.error")
    op = Text(f"  {result.op}", style="cube.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    # Partial progress matters even without --verbose
    if err and err.code == "ENGINE_FAILURE":
        for key in ("pov", "executed", "skipped"):
            if key in err.detail:
                _field(console, key, err.detail[key])
    elif verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Subcube renderers ─────────────────────────────────────────────────


def _render_subcube(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render allocate/calculate/translate/consolidate/calc_epu results."""
    d = result.data
    _status_line(console, result)
    slice_sizes = d.get("slice") or {}
    if slice_sizes:
        shape = " x ".join(f"{axis} {size}" for axis, size in slice_sizes.items())
        _field(console, "slice", shape)
    _field(console, "total", d.get("total", 0))
    _field(console, "executed", d.get("executed", 0))
    if d.get("skipped"):
        _field(console, "skipped", d["skipped"])
    if d.get("cancelled"):
        console.print(Text("  cancelled", style="cube.warning"))
    elif d.get("stopped"):
        console.print(Text("  stopped early", style="cube.warning"))
    if verbose:
        for key, value in (d.get("flags") or {}).items():
            _field(console, key, value)
        _render_meta(console, result)


# ── Metadata renderers ────────────────────────────────────────────────


def _render_names(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render dimensions/members/lists as a single-column table."""
    d = result.data
    _status_line(console, result)
    for key in ("application", "dimension", "filter"):
        if d.get(key):
            _field(console, key, d[key])
    _field(console, "count", d.get("count", 0))
    items = d.get("items") or []
    if items:
        console.print()
        table = Table(show_header=False, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Name", style="cube.member")
        for name in items:
            table.add_row(str(name))
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_expand(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "dimension", d.get("dimension", ""))
    _field(console, "count", d.get("count", 0))
    items = d.get("items") or []
    if not items:
        return
    hierarchical = any("parent_id" in item for item in items)
    console.print()
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="cube.id", justify="right")
    table.add_column("Member", style="cube.member")
    if hierarchical:
        table.add_column("Parent", style="cube.parent")
    for item in items:
        row = [str(item["id"]), str(item["name"])]
        if hierarchical:
            row.append(item.get("parent") or "")
        table.add_row(*row)
    console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_status(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render one row per POV with its calculation status flags."""
    d = result.data
    _status_line(console, result)
    _field(console, "count", d.get("count", 0))
    items = d.get("items") or []
    if items:
        console.print()
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        for axis in d.get("axes", []):
            table.add_column(axis)
        table.add_column("Status")
        for item in items:
            labels = item.get("status", [])
            status = Text(", ".join(labels))
            if labels:
                status.stylize(style_for_status(labels[0]))
            table.add_row(*item["pov"].values(), status)
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_load(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "application", d.get("application", ""))
    _field(console, "source", d.get("source", ""))
    if d.get("replaced"):
        _field(console, "replaced", True)
    dims = d.get("dimensions") or []
    if dims:
        console.print()
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Dimension", style="cube.member")
        table.add_column("Members", justify="right")
        table.add_column("Lists", justify="right")
        for dim in dims:
            table.add_row(dim["name"], str(dim["members"]), str(dim["lists"]))
        console.print(table)
    if d.get("status"):
        _field(console, "status_entries", d["status"])
    if verbose:
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Subcube operations
    "allocate": _render_subcube,
    "calculate": _render_subcube,
    "translate": _render_subcube,
    "consolidate": _render_subcube,
    "calc_epu": _render_subcube,
    # Metadata
    "dimensions": _render_names,
    "members": _render_names,
    "lists": _render_names,
    "expand": _render_expand,
    "status": _render_status,
    # Load
    "load": _render_load,
}
