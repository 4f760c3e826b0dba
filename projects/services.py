"""
Piece transitions and the orchestration around the unlock rules.

Views call into this module and translate PieceError subclasses into HTTP
responses. The read-compute-write sequence of a completion runs inside one
transaction holding a row lock on the parent project, and each status write
is conditional on the status it expects to replace.
"""
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from .exceptions import InvalidPieceTransition, PieceAccessDenied, PieceNotFound, PieceValidationError
from .models import Project, PuzzlePiece
from .pieces import PIECE_METADATA, PieceStatus, parse_piece_type
from .unlock import can_complete, can_start, compute_unlocks

logger = logging.getLogger(__name__)


def _foreign(not_found_message):
    if getattr(settings, 'PIECES_CONCEAL_FOREIGN_PROJECTS', True):
        return PieceNotFound(not_found_message)
    return PieceAccessDenied('Unauthorized')


def get_project_for_user(user, project_id):
    """Fetch a project by its external project_id, enforcing ownership."""
    if not project_id:
        raise PieceNotFound('Project not found')
    try:
        project = Project.objects.get(project_id=project_id)
    except (Project.DoesNotExist, ValidationError, ValueError):
        raise PieceNotFound('Project not found')
    if project.owner_id != user.id:
        logger.warning(f"User {user.id} attempted to access project {project.project_id} owned by {project.owner_id}")
        raise _foreign('Project not found')
    return project


def get_piece_for_user(user, piece_id):
    """Fetch a piece by id together with its project, enforcing ownership of the project."""
    try:
        piece = PuzzlePiece.objects.select_related('project').get(pk=piece_id)
    except (PuzzlePiece.DoesNotExist, ValidationError, ValueError, TypeError):
        raise PieceNotFound('Piece not found')
    if piece.project.owner_id != user.id:
        logger.warning(f"User {user.id} attempted to access piece {piece.id} of project {piece.project.project_id}")
        raise _foreign('Piece not found')
    return piece


def create_project(user, name, description=None):
    name = (name or '').strip()
    description = (description or '').strip() or None
    if not name:
        raise PieceValidationError('Project name is required')
    project = Project.create_with_pieces(owner=user, name=name, description=description)
    logger.info(f"Created project {project.project_id} for user {user.id}",
                extra={'easylogs_metadata': {'project_id': str(project.project_id), 'user_id': user.id}})
    return project


def delete_project(user, project_id):
    project = get_project_for_user(user, project_id)
    project_name = project.name
    project.delete()
    logger.info(f"Deleted project {project_id} ('{project_name}') for user {user.id}")


def start_piece(user, project_id, piece_type):
    """
    Open a piece for work.

    `available` pieces move to `in_progress`; pieces already in progress or
    complete are returned unchanged; locked pieces are rejected.
    """
    project = get_project_for_user(user, project_id)
    parsed = parse_piece_type(piece_type)
    if parsed is None:
        raise PieceNotFound(f"Unknown piece type: {piece_type}")

    try:
        piece = project.pieces.get(piece_type=parsed)
    except PuzzlePiece.DoesNotExist:
        raise PieceNotFound('Piece not found')

    if piece.status == PieceStatus.LOCKED:
        raise InvalidPieceTransition('Piece is locked until its prerequisites are complete')

    if can_start(piece.status):
        updated = PuzzlePiece.objects.filter(pk=piece.pk, status=PieceStatus.AVAILABLE).update(
            status=PieceStatus.IN_PROGRESS, updated_at=timezone.now()
        )
        if updated:
            logger.info(f"Piece {piece.id} ({piece.piece_type}) of project {project.project_id} is now in progress")
        piece.refresh_from_db()

    return piece


def complete_piece(user, piece_id, summary):
    """
    Mark an in-progress piece complete with its summary and unlock dependents.

    Returns (piece, unlocked) where `unlocked` lists the piece types that moved
    from locked to available, in display order.
    """
    summary = summary.strip() if isinstance(summary, str) else ''
    if not piece_id or not summary:
        raise PieceValidationError('Missing required fields: pieceId and summary')

    piece = get_piece_for_user(user, piece_id)
    if not can_complete(piece.status):
        raise InvalidPieceTransition('Can only complete pieces that are in progress')

    with transaction.atomic():
        # Serialize completions within the project
        Project.objects.select_for_update().get(pk=piece.project_id)
        now = timezone.now()

        updated = PuzzlePiece.objects.filter(pk=piece.pk, status=PieceStatus.IN_PROGRESS).update(
            status=PieceStatus.COMPLETE, summary=summary, updated_at=now
        )
        if not updated:
            raise InvalidPieceTransition('Can only complete pieces that are in progress')

        snapshot = [
            p.snapshot()
            for p in PuzzlePiece.objects.filter(project_id=piece.project_id).only('id', 'piece_type', 'status')
        ]
        to_unlock = compute_unlocks(snapshot, piece.pk)

        unlocked = []
        if to_unlock:
            PuzzlePiece.objects.filter(pk__in=to_unlock, status=PieceStatus.LOCKED).update(
                status=PieceStatus.AVAILABLE, updated_at=now
            )
            unlocked = sorted(
                (p.piece_type for p in snapshot if p.id in to_unlock),
                key=lambda t: PIECE_METADATA[t].order,
            )

        Project.objects.filter(pk=piece.project_id).update(updated_at=now)

    piece.refresh_from_db()
    logger.info(f"Piece {piece.id} ({piece.piece_type}) of project {piece.project.project_id} completed; "
                f"unlocked: {unlocked or 'none'}",
                extra={'easylogs_metadata': {'project_id': str(piece.project.project_id), 'piece_id': piece.id}})
    return piece, unlocked
