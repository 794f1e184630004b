"""
Layout Command - Print node positions, links and the fitted transform.

Standardized output version: --json emits a single pydantic-validated
document for tooling.
"""

import logging
import sys
from typing import List, Optional

import click
from pydantic import BaseModel, Field

from ...core.types import Outcome
from ..utils import build_view, report_outcome, view_options

logger = logging.getLogger(__name__)


# --- API Models ---
class NodePosition(BaseModel):
    id: str
    label: str
    x: float
    y: float
    depth: int
    parent_id: Optional[str] = None


class TransformModel(BaseModel):
    tx: float
    ty: float
    scale: float
    label: str


class LayoutResponse(BaseModel):
    status: str
    message: str = ""
    error: Optional[str] = None
    nodes: List[NodePosition] = Field(default_factory=list)
    links: List[List[str]] = Field(default_factory=list)
    transform: TransformModel


@click.command()
@view_options
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def layout(as_json: bool, **options):
    """
    Lay out the visible hierarchy and fit it to the viewport.
    """
    view = build_view(**options)
    if view is None:
        sys.exit(1)

    snapshot = view.snapshot
    transform = view.transform

    if as_json:
        response = LayoutResponse(
            status=snapshot.outcome.value,
            message=snapshot.message,
            error=str(snapshot.error) if snapshot.error else None,
            nodes=[
                NodePosition(id=n.id, label=n.label, x=n.x, y=n.y, depth=n.depth, parent_id=n.parent_id)
                for n in snapshot.nodes
            ],
            links=[[link.source.id, link.target.id] for link in snapshot.links],
            transform=TransformModel(
                tx=transform.tx, ty=transform.ty, scale=transform.scale, label=transform.label,
            ),
        )
        click.echo(response.model_dump_json(indent=2))
        if snapshot.outcome is Outcome.INVALID:
            sys.exit(1)
        return

    if not report_outcome(view):
        sys.exit(1 if snapshot.outcome is Outcome.INVALID else 0)

    for node in snapshot.nodes:
        indent = "  " * node.depth
        click.echo(f"{indent}{node.id}  ({node.x:.1f}, {node.y:.1f})")
    click.echo()
    click.echo(f"{len(snapshot.nodes)} nodes, {len(snapshot.links)} links")
    click.echo(f"Transform: translate=({transform.tx:.1f}, {transform.ty:.1f}) zoom={transform.label}")
