"""
Global Configuration and Interaction Defaults.

This module centralizes the numeric limits the view layer depends on
(zoom bounds, fit padding, toggle geometry) together with the settings
models a host supplies for layout, controls and the table view.

Settings are parsed leniently: a value that fails validation falls back
to the field default instead of rejecting the whole settings object.
"""

import logging
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# --- Zoom Limits ---
# User zoom (wheel, buttons, direct entry) is clamped to this range
MIN_SCALE = 0.2
MAX_SCALE = 4.0

# Fit-to-viewport never magnifies beyond this
FIT_MAX_SCALE = 2.0

# Padding kept free on every side when fitting content
FIT_PADDING = 24.0

# Direct percentage entry bounds (percent, not scale)
MIN_ZOOM_PERCENT = 20.0
MAX_ZOOM_PERCENT = 400.0

# Double-click zoom never goes below this percentage of the current scale
MIN_DOUBLE_CLICK_PERCENT = 10.0

ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9

# Transform used before the first fit
INITIAL_TRANSLATE = (20.0, 20.0)
INITIAL_SCALE = 1.0

# --- Collapse Toggle Geometry ---
# Square affordance anchored to the top-right corner of a card
TOGGLE_SIZE = 14.0
TOGGLE_INSET = 6.0

# --- Table View ---
TABLE_BASE_INDENT = 8
TABLE_INDENT_PER_LEVEL = 14

DEFAULT_SETTINGS_PATH = Path(".hierflow/settings.yaml")


class Orientation(StrEnum):
    """Direction in which tree levels grow."""
    TOP_DOWN = "TD"
    LEFT_RIGHT = "LR"


class ViewMode(StrEnum):
    """The two renderings of the same visible set."""
    TREE = "tree"
    TABLE = "table"


class _LenientModel(BaseModel):
    """Base model whose invalid fields fall back to their defaults."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(cls, value: Any, handler, info):
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            logger.debug(f"Invalid value for {cls.__name__}.{info.field_name}: {value!r}, using default")
            return field.get_default(call_default_factory=True)


class LayoutSettings(_LenientModel):
    """Card footprint and spacing for the tidy tree."""
    orientation: Orientation = Orientation.TOP_DOWN
    level_spacing: float = Field(default=70.0, ge=0)
    sibling_spacing: float = Field(default=18.0, ge=0)
    card_width: float = Field(default=120.0, gt=0)
    card_height: float = Field(default=40.0, gt=0)

    @property
    def node_size(self) -> tuple[float, float]:
        """Per-node footprint (breadth, depth) used by the layout."""
        return (
            self.card_width + self.sibling_spacing,
            self.card_height + self.level_spacing,
        )


class ControlSettings(_LenientModel):
    """Which interactive controls the host shows."""
    show_controls: bool = True
    show_search: bool = True
    show_hierarchy_filter: bool = True
    show_parent_filter: bool = True
    show_dropdown_filter: bool = True
    show_zoom: bool = True
    show_view_toggle: bool = True
    show_collapse_expand: bool = True
    default_view: ViewMode = ViewMode.TREE
    double_click_zoom_percent: float = 130.0

    def shows(self, control: str) -> bool:
        """Whether a toolbar control is offered; show_controls hides them all."""
        return self.show_controls and getattr(self, f"show_{control}")


class TableSettings(_LenientModel):
    show_header: bool = True
    zebra: bool = True


class ViewSettings(_LenientModel):
    """Complete, read-only settings for one recomputation."""
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    controls: ControlSettings = Field(default_factory=ControlSettings)
    table: TableSettings = Field(default_factory=TableSettings)


def settings_from_dict(data: Optional[Dict[str, Any]]) -> ViewSettings:
    """Build settings from a plain mapping, ignoring unknown sections."""
    data = data or {}
    sections: Dict[str, Any] = {}
    for name, model in (("layout", LayoutSettings), ("controls", ControlSettings), ("table", TableSettings)):
        raw = data.get(name)
        sections[name] = model.model_validate(raw) if isinstance(raw, dict) else model()
    return ViewSettings(**sections)


def load_settings(path: Optional[Path] = None) -> ViewSettings:
    """
    Load view settings from a YAML file.

    A missing or unreadable file yields the defaults.

    Args:
        path (Optional[Path]): Settings file, defaults to .hierflow/settings.yaml.

    Returns:
        ViewSettings: The parsed settings.
    """
    settings_path = Path(path) if path else DEFAULT_SETTINGS_PATH
    if not settings_path.exists():
        return ViewSettings()

    try:
        with open(settings_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Failed to read settings from {settings_path}: {e}")
        return ViewSettings()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring settings file {settings_path}: expected a mapping")
        return ViewSettings()

    return settings_from_dict(data)
