import json
import logging

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods, require_POST

from .decorators import api_login_required
from .exceptions import PieceError
from .models import Project
from .pieces import PIECE_METADATA
from .services import complete_piece, create_project, delete_project, get_project_for_user, start_piece

logger = logging.getLogger(__name__)


def _piece_payload(piece):
    metadata = piece.metadata
    return {
        'id': piece.id,
        'piece_type': piece.piece_type,
        'title': metadata.title if metadata else piece.piece_type,
        'description': metadata.description if metadata else '',
        'icon': metadata.icon if metadata else '',
        'order': metadata.order if metadata else None,
        'prerequisites': sorted(metadata.prerequisites, key=lambda t: PIECE_METADATA[t].order) if metadata else [],
        'status': piece.status,
        'summary': piece.summary,
        'content': piece.content,
        'updated_at': piece.updated_at.isoformat(),
    }


def _project_payload(project, include_pieces=False):
    completed, total = project.progress()
    data = {
        'project_id': str(project.project_id),
        'name': project.name,
        'description': project.description,
        'created_at': project.created_at.isoformat(),
        'updated_at': project.updated_at.isoformat(),
        'progress': {'completed': completed, 'total': total},
    }
    if include_pieces:
        data['pieces'] = [_piece_payload(piece) for piece in project.ordered_pieces()]
    return data


def _error_response(exc):
    return JsonResponse({'success': False, 'error': exc.message}, status=exc.status_code)


def _internal_error():
    return JsonResponse({'success': False, 'error': 'Internal server error'}, status=500)


@csrf_exempt
@api_login_required
@require_http_methods(["GET", "POST"])
def project_list_api(request):
    """List the current user's projects, or create a new one."""
    if request.method == "GET":
        projects = Project.objects.filter(owner=request.user).order_by('-updated_at')
        return JsonResponse({'projects': [_project_payload(p) for p in projects]})

    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON data'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'success': False, 'error': 'Invalid JSON data'}, status=400)

    try:
        project = create_project(request.user, data.get('name'), data.get('description'))
    except PieceError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Error creating project")
        return _internal_error()

    return JsonResponse({
        'success': True,
        'project': _project_payload(project, include_pieces=True),
    }, status=201)


@csrf_exempt
@api_login_required
@require_http_methods(["GET", "DELETE"])
def project_detail_api(request, project_id):
    """Return a project with its pieces, or delete it (pieces go with it)."""
    try:
        if request.method == "DELETE":
            delete_project(request.user, project_id)
            return JsonResponse({'success': True, 'message': 'Project deleted successfully'})

        project = get_project_for_user(request.user, project_id)
        return JsonResponse(_project_payload(project, include_pieces=True))
    except PieceError as e:
        return _error_response(e)
    except Exception:
        logger.exception(f"Error handling {request.method} for project {project_id}")
        return _internal_error()


@csrf_exempt
@api_login_required
@require_POST
def open_piece_api(request, project_id, piece_type):
    """Open a piece for work; an available piece moves to in_progress."""
    try:
        piece = start_piece(request.user, project_id, piece_type)
    except PieceError as e:
        return _error_response(e)
    except Exception:
        logger.exception(f"Error opening piece {piece_type} of project {project_id}")
        return _internal_error()

    return JsonResponse({'success': True, 'piece': _piece_payload(piece)})


@csrf_exempt
@api_login_required
@require_POST
def complete_piece_api(request):
    """Complete an in-progress piece with a summary and unlock the pieces that depend on it."""
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return JsonResponse({'success': False, 'error': 'Invalid JSON data'}, status=400)
    if not isinstance(data, dict):
        return JsonResponse({'success': False, 'error': 'Invalid JSON data'}, status=400)

    try:
        piece, unlocked = complete_piece(request.user, data.get('pieceId'), data.get('summary'))
    except PieceError as e:
        return _error_response(e)
    except Exception:
        logger.exception("Complete piece API error")
        return _internal_error()

    return JsonResponse({
        'success': True,
        'message': 'Piece completed successfully',
        'piece': _piece_payload(piece),
        'unlocked': unlocked,
    })
