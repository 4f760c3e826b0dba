"""
Piece unlocking rules.

Everything here is pure: functions take a snapshot of a project's pieces and
return decisions. Persistence and locking live in projects.services.
"""
from typing import Dict, FrozenSet, Hashable, Iterable, Mapping, NamedTuple

from .pieces import PIECE_METADATA, PieceMetadata, PieceStatus


class PieceSnapshot(NamedTuple):
    id: Hashable
    piece_type: str
    status: str


def _prerequisites_met(meta: PieceMetadata, statuses: Mapping[str, str]) -> bool:
    # Empty prerequisites are vacuously satisfied; absent types count as incomplete.
    return all(statuses.get(prereq) == PieceStatus.COMPLETE for prereq in meta.prerequisites)


def compute_unlocks(
    pieces: Iterable[PieceSnapshot],
    just_completed_id: Hashable,
    metadata: Mapping[str, PieceMetadata] = PIECE_METADATA,
) -> FrozenSet[Hashable]:
    """
    Return the ids of locked pieces whose prerequisites are all complete.

    The piece identified by `just_completed_id` is treated as complete whatever
    status the snapshot carries for it. Only pieces currently `locked` are
    candidates; unknown piece types in the snapshot are ignored.
    """
    statuses: Dict[str, str] = {}
    ids: Dict[str, Hashable] = {}
    for piece in pieces:
        status = PieceStatus.COMPLETE if piece.id == just_completed_id else piece.status
        statuses[piece.piece_type] = status
        ids[piece.piece_type] = piece.id

    unlocked = set()
    for piece_type, meta in metadata.items():
        if statuses.get(piece_type) != PieceStatus.LOCKED:
            continue
        if _prerequisites_met(meta, statuses):
            unlocked.add(ids[piece_type])
    return frozenset(unlocked)


def initial_statuses(metadata: Mapping[str, PieceMetadata] = PIECE_METADATA) -> Dict[str, str]:
    """Status of every piece type at project creation, evaluated against an all-locked baseline."""
    baseline = {piece_type: PieceStatus.LOCKED for piece_type in metadata}
    return {
        piece_type: PieceStatus.AVAILABLE if _prerequisites_met(meta, baseline) else PieceStatus.LOCKED
        for piece_type, meta in metadata.items()
    }


def initial_status(piece_type: str) -> str:
    return initial_statuses()[piece_type]


def can_start(status: str) -> bool:
    """A piece can be opened for work (available -> in_progress) only from `available`."""
    return status == PieceStatus.AVAILABLE


def can_complete(status: str) -> bool:
    """A piece can only be completed from `in_progress`."""
    return status == PieceStatus.IN_PROGRESS
