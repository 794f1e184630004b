"""
Options Command - List the values the dropdown filters offer.
"""

import sys

import click

from ...core.index import build_filter_options
from ..utils import echo_info, load_rows


@click.command()
@click.argument("rows_file", type=click.Path(exists=True, dir_okay=False))
def options(rows_file: str):
    """
    List node ids, parent ids and tags available as filter values.
    """
    rows = load_rows(rows_file)
    if rows is None:
        sys.exit(1)

    choices = build_filter_options(rows)
    for title, values in (
        ("Nodes", choices.node_ids),
        ("Parents", choices.parent_ids),
        ("Tags", choices.tags),
    ):
        click.echo(click.style(f"{title} ({len(values)}):", bold=True))
        if not values:
            echo_info("(none)")
        for value in values:
            click.echo(f"  {value}")
