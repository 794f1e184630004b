"""
View transform arithmetic.

A ViewTransform maps layout space to screen space:
screen = layout * scale + translate. All functions here are pure and
return a new transform; scale is always kept inside [MIN_SCALE, MAX_SCALE].
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from ..config import (
    FIT_MAX_SCALE,
    FIT_PADDING,
    INITIAL_SCALE,
    INITIAL_TRANSLATE,
    MAX_SCALE,
    MAX_ZOOM_PERCENT,
    MIN_DOUBLE_CLICK_PERCENT,
    MIN_SCALE,
    MIN_ZOOM_PERCENT,
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
)
from .tidy import LayoutNode

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_scale(scale: float) -> float:
    return clamp(scale, MIN_SCALE, MAX_SCALE)


@dataclass(frozen=True)
class Viewport:
    """Drawable area in logical pixels."""
    width: float = 0.0
    height: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> Point:
        return (self.width / 2, self.height / 2)


@dataclass(frozen=True)
class ViewTransform:
    tx: float = INITIAL_TRANSLATE[0]
    ty: float = INITIAL_TRANSLATE[1]
    scale: float = INITIAL_SCALE

    def to_screen(self, x: float, y: float) -> Point:
        return (x * self.scale + self.tx, y * self.scale + self.ty)

    def to_layout(self, sx: float, sy: float) -> Point:
        return ((sx - self.tx) / self.scale, (sy - self.ty) / self.scale)

    @property
    def percent(self) -> int:
        return round(self.scale * 100)

    @property
    def label(self) -> str:
        return f"{self.percent}%"


# =========================================================================
# Fit
# =========================================================================

def content_bounds(
    nodes: Iterable[LayoutNode],
    card_width: float,
    card_height: float,
) -> Optional[Tuple[float, float, float, float]]:
    """Bounding box (min_x, min_y, max_x, max_y) of every card footprint."""
    min_x = min_y = math.inf
    max_x = max_y = -math.inf
    half_w = card_width / 2
    half_h = card_height / 2
    found = False
    for node in nodes:
        found = True
        min_x = min(min_x, node.x - half_w)
        max_x = max(max_x, node.x + half_w)
        min_y = min(min_y, node.y - half_h)
        max_y = max(max_y, node.y + half_h)
    if not found:
        return None
    return (min_x, min_y, max_x, max_y)


def fit_transform(
    nodes: Iterable[LayoutNode],
    viewport: Viewport,
    card_width: float,
    card_height: float,
    current: Optional[ViewTransform] = None,
) -> ViewTransform:
    """
    Scale and centre the content inside the viewport.

    The scale is clamped to [MIN_SCALE, FIT_MAX_SCALE]. Without nodes, or
    with an empty viewport, `current` (or the initial transform) is
    returned unchanged.
    """
    current = current or ViewTransform()
    bounds = content_bounds(nodes, card_width, card_height)
    if bounds is None or viewport.is_empty:
        return current

    min_x, min_y, max_x, max_y = bounds
    content_w = max(1.0, max_x - min_x)
    content_h = max(1.0, max_y - min_y)
    avail_w = max(1.0, viewport.width - FIT_PADDING * 2)
    avail_h = max(1.0, viewport.height - FIT_PADDING * 2)

    scale = clamp(min(avail_w / content_w, avail_h / content_h), MIN_SCALE, FIT_MAX_SCALE)
    cx = (min_x + max_x) / 2
    cy = (min_y + max_y) / 2
    vx, vy = viewport.center
    return ViewTransform(tx=vx - cx * scale, ty=vy - cy * scale, scale=scale)


# =========================================================================
# Pan / Zoom
# =========================================================================

def pan(transform: ViewTransform, dx: float, dy: float) -> ViewTransform:
    return replace(transform, tx=transform.tx + dx, ty=transform.ty + dy)


def zoom_about(transform: ViewTransform, new_scale: float, anchor: Point) -> ViewTransform:
    """
    Change scale while keeping the layout point under `anchor` fixed.

    translate' = anchor - (anchor - translate) * (new / old)
    """
    target = clamp_scale(new_scale)
    ratio = target / transform.scale
    ax, ay = anchor
    return ViewTransform(
        tx=ax - (ax - transform.tx) * ratio,
        ty=ay - (ay - transform.ty) * ratio,
        scale=target,
    )


def zoom_by(transform: ViewTransform, factor: float, anchor: Point) -> ViewTransform:
    return zoom_about(transform, transform.scale * factor, anchor)


def wheel_factor(delta_y: float) -> float:
    """Scrolling up (negative delta) zooms in."""
    return ZOOM_IN_FACTOR if delta_y < 0 else ZOOM_OUT_FACTOR


def parse_zoom_percent(text: str) -> Optional[float]:
    """
    Parse direct zoom entry such as "150%" or "150" into a scale.

    The percentage is clamped to [MIN_ZOOM_PERCENT, MAX_ZOOM_PERCENT];
    text that is not a number returns None.
    """
    cleaned = (text or "").replace("%", "").strip()
    try:
        percent = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(percent):
        return None
    return clamp(percent, MIN_ZOOM_PERCENT, MAX_ZOOM_PERCENT) / 100


def zoom_to_node(
    transform: ViewTransform,
    node: LayoutNode,
    viewport: Viewport,
    percent: float,
) -> ViewTransform:
    """
    Zoom relative to the current scale and bring `node` to the centre.

    Args:
        transform: Current transform.
        node: The double-clicked node.
        viewport: Drawable area.
        percent: Zoom step as a percentage of the current scale.
    """
    factor = max(MIN_DOUBLE_CLICK_PERCENT, percent) / 100
    scale = clamp_scale(transform.scale * factor)
    cx, cy = viewport.center
    return ViewTransform(tx=cx - node.x * scale, ty=cy - node.y * scale, scale=scale)


def keep_stationary(transform: ViewTransform, screen: Point, node: LayoutNode) -> ViewTransform:
    """Translate so `node` lands on `screen` without changing the scale."""
    sx, sy = screen
    return replace(
        transform,
        tx=sx - node.x * transform.scale,
        ty=sy - node.y * transform.scale,
    )
