"""
Hit Command - Resolve a screen point against the fitted tree.
"""

import sys

import click

from ...core.types import Outcome
from ..utils import build_view, echo_info, report_outcome, view_options


@click.command()
@view_options
@click.argument("x", type=float)
@click.argument("y", type=float)
def hit(x: float, y: float, **options):
    """
    Report the node (and whether its collapse toggle) under screen point X Y.

    The tree is fitted to the viewport first, exactly as a host would
    show it.
    """
    view = build_view(**options)
    if view is None:
        sys.exit(1)
    if not report_outcome(view):
        sys.exit(1 if view.snapshot.outcome is Outcome.INVALID else 0)

    result = view.hit_test(x, y)
    if result is None:
        echo_info(f"Nothing at ({x:g}, {y:g}) [zoom {view.zoom_label}]")
        return

    target = "toggle" if result.toggle_hit else "node"
    click.echo(f"{result.node.id}\t{target}\t{result.local_x:.1f}\t{result.local_y:.1f}")
