"""
Static metadata for the five puzzle pieces a project is made of.

The table is loaded once at import time and validated from
ProjectsConfig.ready(); nothing mutates it afterwards.
"""
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, NamedTuple, Optional

from django.core.exceptions import ImproperlyConfigured
from django.db import models


class PieceType(models.TextChoices):
    PURPOSE = 'purpose', 'Purpose'
    CUSTOMERS = 'customers', 'Customers'
    BOUNDARIES = 'boundaries', 'Boundaries'
    FEATURES = 'features', 'Features'
    MVP = 'mvp', 'MVP'


class PieceStatus(models.TextChoices):
    LOCKED = 'locked', 'Locked'
    AVAILABLE = 'available', 'Available'
    IN_PROGRESS = 'in_progress', 'In progress'
    COMPLETE = 'complete', 'Complete'


class PieceMetadata(NamedTuple):
    title: str
    description: str
    icon: str
    order: int
    prerequisites: FrozenSet[str]


PIECE_METADATA: Mapping[str, PieceMetadata] = MappingProxyType({
    PieceType.PURPOSE: PieceMetadata(
        title='Purpose & Vision',
        description='Define why your product exists and what problem it solves',
        icon='🎯',
        order=1,
        prerequisites=frozenset(),
    ),
    PieceType.CUSTOMERS: PieceMetadata(
        title='Target Customers',
        description='Identify who will use and benefit from your product',
        icon='👥',
        order=2,
        prerequisites=frozenset({PieceType.PURPOSE}),
    ),
    PieceType.BOUNDARIES: PieceMetadata(
        title='Scope & Boundaries',
        description='Clarify what your product will and will not do',
        icon='🔲',
        order=3,
        prerequisites=frozenset({PieceType.PURPOSE, PieceType.CUSTOMERS}),
    ),
    PieceType.FEATURES: PieceMetadata(
        title='Core Features',
        description='Define the key capabilities your product needs',
        icon='⚡',
        order=4,
        prerequisites=frozenset({PieceType.PURPOSE, PieceType.CUSTOMERS, PieceType.BOUNDARIES}),
    ),
    PieceType.MVP: PieceMetadata(
        title='MVP Definition',
        description='Determine the minimum viable version to launch',
        icon='🚀',
        order=5,
        prerequisites=frozenset({
            PieceType.PURPOSE, PieceType.CUSTOMERS, PieceType.BOUNDARIES, PieceType.FEATURES,
        }),
    ),
})

# Piece types in display order
PIECE_TYPES = tuple(sorted(PIECE_METADATA, key=lambda t: PIECE_METADATA[t].order))


def parse_piece_type(value) -> Optional[PieceType]:
    """Return the PieceType for a raw string, or None if it is not one of the five."""
    try:
        return PieceType(value)
    except ValueError:
        return None


def get_piece_metadata(piece_type) -> PieceMetadata:
    return PIECE_METADATA[PieceType(piece_type)]


def validate_piece_graph(metadata: Mapping[str, PieceMetadata] = PIECE_METADATA) -> None:
    """
    Check that the prerequisite relation is a DAG consistent with `order`.

    Raises ImproperlyConfigured on an unknown prerequisite, a duplicated
    order, a prerequisite that does not come strictly earlier, or a cycle.
    """
    orders = [meta.order for meta in metadata.values()]
    if len(set(orders)) != len(orders):
        raise ImproperlyConfigured(f"Puzzle piece orders must be unique, got {sorted(orders)}")

    for piece_type, meta in metadata.items():
        for prereq in meta.prerequisites:
            if prereq not in metadata:
                raise ImproperlyConfigured(
                    f"Puzzle piece '{piece_type}' has unknown prerequisite '{prereq}'"
                )
            if metadata[prereq].order >= meta.order:
                raise ImproperlyConfigured(
                    f"Puzzle piece '{piece_type}' (order {meta.order}) depends on "
                    f"'{prereq}' (order {metadata[prereq].order})"
                )

    # Kahn's algorithm
    remaining: Dict[str, set] = {t: set(m.prerequisites) for t, m in metadata.items()}
    while remaining:
        ready = [t for t, prereqs in remaining.items() if not prereqs]
        if not ready:
            raise ImproperlyConfigured(
                f"Puzzle piece prerequisites contain a cycle among {sorted(remaining)}"
            )
        for t in ready:
            del remaining[t]
        for prereqs in remaining.values():
            prereqs.difference_update(ready)
