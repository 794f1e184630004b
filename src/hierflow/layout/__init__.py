"""Geometry: tidy-tree positions, the view transform and hit testing."""

from .hit_test import Hit, HitRegion, build_regions, hit_test
from .tidy import LayoutNode, LayoutResult, Link, compute_layout
from .viewport import Viewport, ViewTransform, fit_transform

__all__ = [
    "Hit",
    "HitRegion",
    "LayoutNode",
    "LayoutResult",
    "Link",
    "ViewTransform",
    "Viewport",
    "build_regions",
    "compute_layout",
    "fit_transform",
    "hit_test",
]
