"""
Core type definitions for hierflow.

Rows are the immutable input records the host delivers; the enums here
tag hierarchy node kinds, structural failures and recomputation outcomes.
"""

from enum import StrEnum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Scalar = Union[int, float, str, None]


class NodeKind(StrEnum):
    """Distinguishes nodes backed by a row from the injected layout root."""
    REAL = "real"
    SYNTHETIC = "synthetic"


class StructuralErrorKind(StrEnum):
    """Reasons a row set cannot be arranged into a single tree."""
    DUPLICATE_ID = "duplicate_id"
    CYCLE = "cycle"
    MISSING_PARENT = "missing_parent"
    NO_ROOT = "no_root"
    MULTIPLE_ROOTS = "multiple_roots"


class Outcome(StrEnum):
    """Tri-state result of a recomputation, plus the getting-started state."""
    READY = "ready"
    EMPTY = "empty"
    NO_DATA = "no_data"
    INVALID = "invalid"


class Row(BaseModel):
    """
    One input record of the hierarchy.

    `parent_id` of None (or one that does not resolve to another row)
    makes the row a root candidate. `identity` is opaque to hierflow and
    is only handed back to the host for selection callbacks.
    """
    id: str = Field(min_length=1)
    parent_id: Optional[str] = None
    label: str = ""
    value: Scalar = None
    sparkline: Scalar = None
    tooltip: Scalar = None
    dropdown_tag: Optional[str] = None
    identity: Any = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _strip_id(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("parent_id", mode="before")
    @classmethod
    def _normalize_parent(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def model_post_init(self, __context) -> None:
        if not self.label:
            object.__setattr__(self, "label", self.id)

    def __hash__(self):
        return hash(self.id)

    def with_scalars(self, value: Scalar, sparkline: Scalar, tooltip: Scalar, identity: Any = None) -> "Row":
        """Return a copy carrying a different set of measure fields."""
        return self.model_copy(update={
            "value": value,
            "sparkline": sparkline,
            "tooltip": tooltip,
            "identity": self.identity if identity is None else identity,
        })


class StructuralError(BaseModel):
    """
    Why a visible row set could not be turned into a tree.
    """
    kind: StructuralErrorKind
    node_ids: List[str] = Field(default_factory=list)
    detail: str = ""

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        ids = ", ".join(self.node_ids[:5])
        more = f" (+{len(self.node_ids) - 5} more)" if len(self.node_ids) > 5 else ""
        suffix = f": {ids}{more}" if ids else ""
        return f"{self.kind.value}{suffix}"
