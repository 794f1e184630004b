"""
Outcome of building a hierarchy from rows.

stratify() and build_hierarchy() hand back Ok(hierarchy) or
Err(StructuralError). recompute() branches on the two cases and turns an
Err into an INVALID snapshot, so a bad row set never raises.
"""

import logging
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar, Union

from .types import StructuralError, StructuralErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A hierarchy that passed every structural check."""
    value: T


@dataclass(frozen=True)
class Err:
    """The first structural problem found in a row set."""
    error: StructuralError

    @classmethod
    def structural(cls, kind: StructuralErrorKind, node_ids: Sequence[str], detail: str = "") -> "Err":
        error = StructuralError(kind=kind, node_ids=list(node_ids), detail=detail)
        logger.warning(f"Invalid hierarchy: {error}")
        return cls(error)

    @property
    def kind(self) -> StructuralErrorKind:
        return self.error.kind


Result = Union[Ok[T], Err]
