"""
Table Command - Print the indented table view.
"""

import sys

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ...core.types import Outcome
from ..utils import build_view, report_outcome, view_options


@click.command()
@view_options
def table(**options):
    """
    Print the visible hierarchy as an indented table.

    \b
    Examples:
      hierflow table rows.json
      hierflow table rows.json --search sales --collapse EMEA
    """
    view = build_view(**options)
    if view is None:
        sys.exit(1)
    if not report_outcome(view):
        sys.exit(1 if view.snapshot.outcome is Outcome.INVALID else 0)

    settings = view.settings.table
    grid = Table(show_header=settings.show_header, row_styles=["", "dim"] if settings.zebra else None)
    grid.add_column("Node")
    grid.add_column("Value", justify="right")

    for row in view.snapshot.table_rows:
        glyph = row.glyph or " "
        indent = "  " * row.depth
        grid.add_row(Text(f"{indent}{glyph} {row.label}"), Text(row.value_text))

    Console().print(grid)
