"""
CLI Utilities - Shared helper functions for command line operations.

This module provides the styled echo helpers, row file loading and the
filter/collapse/viewport options every command accepts.
"""

import json
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple

import click

from ..config import load_settings
from ..core.index import parse_rows
from ..core.types import Outcome, Row
from ..layout.viewport import Viewport
from ..view.controller import HierarchyView


def echo_error(message: str) -> None:
    """
    Print an error message with a red cross.

    Args:
        message (str): The error message to display.
    """
    click.echo(click.style(f"❌ {message}", fg="red"), err=True)


def echo_warning(message: str) -> None:
    click.echo(click.style(f"⚠️  {message}", fg="yellow"), err=True)


def echo_info(message: str) -> None:
    click.echo(click.style(f"   {message}", dim=True))


def load_rows(rows_file: str) -> Optional[List[Row]]:
    """
    Load rows from a JSON file.

    The file holds either a list of records or an object with a "rows"
    list. Each record needs an "id" and may carry "parent_id", "label",
    "value", "sparkline", "tooltip" and "dropdown_tag".

    Args:
        rows_file (str): Path to the JSON file.

    Returns:
        Optional[List[Row]]: The parsed rows, or None if loading failed.
    """
    path = Path(rows_file)
    if not path.exists():
        echo_error(f"Rows file not found: {rows_file}")
        return None

    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        echo_error(f"Failed to read rows: {e}")
        return None

    records = data.get("rows") if isinstance(data, dict) else data
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        echo_error("Expected a list of row objects (or {\"rows\": [...]})")
        return None

    return parse_rows(records)


def view_options(func: Callable) -> Callable:
    """Attach the options shared by every view command."""
    options = [
        click.argument("rows_file", type=click.Path(exists=True, dir_okay=False)),
        click.option("-s", "--search", default="", help="Case-insensitive label search"),
        click.option("--hierarchy", "hierarchy_filter", default=None, help="Scope to one node's branch"),
        click.option("--parent", "parent_filter", default=None, help="Scope to one parent's children"),
        click.option("--tag", "dropdown_filter", default=None, help="Scope to rows with this tag"),
        click.option("-c", "--collapse", "collapsed", multiple=True, help="Collapse a node (repeatable)"),
        click.option("--collapse-all", is_flag=True, help="Collapse every parent"),
        click.option("--settings", "settings_path", default=None, type=click.Path(dir_okay=False),
                     help="Settings YAML (default: .hierflow/settings.yaml)"),
        click.option("--width", default=800.0, type=float, help="Viewport width in pixels"),
        click.option("--height", default=600.0, type=float, help="Viewport height in pixels"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_view(
    rows_file: str,
    search: str = "",
    hierarchy_filter: Optional[str] = None,
    parent_filter: Optional[str] = None,
    dropdown_filter: Optional[str] = None,
    collapsed: Tuple[str, ...] = (),
    collapse_all: bool = False,
    settings_path: Optional[str] = None,
    width: float = 800.0,
    height: float = 600.0,
    **_: Any,
) -> Optional[HierarchyView]:
    """
    Load rows and drive a HierarchyView into the requested state.

    Returns:
        Optional[HierarchyView]: The configured view, or None if the rows
            could not be loaded.
    """
    rows = load_rows(rows_file)
    if rows is None:
        return None

    settings = load_settings(Path(settings_path) if settings_path else None)
    view = HierarchyView(settings=settings, viewport=Viewport(width, height))
    view.update(rows)

    # Filter options are only known after the first update.
    options = view.filter_options
    for value, known, setter in (
        (hierarchy_filter, options.node_ids, view.set_hierarchy_filter),
        (parent_filter, options.parent_ids, view.set_parent_filter),
        (dropdown_filter, options.tags, view.set_dropdown_filter),
    ):
        if not value:
            continue
        if value in known:
            setter(value)
        else:
            echo_warning(f"Unknown filter value ignored: {value}")
    view.set_search_query(search)

    if collapse_all and not view.collapse_all():
        echo_warning("Collapse-all is hidden by the settings file")
    for node_id in collapsed:
        if node_id in view.state.collapsed:
            continue
        if not view.toggle_collapse(node_id):
            echo_warning(f"Nothing to collapse under: {node_id}")
    if collapsed:
        view.fit_to_viewport()

    return view


def report_outcome(view: HierarchyView) -> bool:
    """
    Print the status of a snapshot that has nothing to draw.

    Returns:
        bool: True when the snapshot is ready to render.
    """
    snapshot = view.snapshot
    if snapshot.outcome is Outcome.READY:
        return True
    if snapshot.outcome is Outcome.INVALID:
        echo_error(snapshot.message)
        if snapshot.error is not None:
            echo_info(str(snapshot.error))
    elif snapshot.outcome is Outcome.EMPTY:
        echo_warning(snapshot.message or "Nothing visible.")
    else:
        echo_info("No rows to display. Add records with an \"id\" to get started.")
    return False
