import json
import logging

from django.http import JsonResponse, StreamingHttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from factory.llm_config import get_available_models, get_default_model_key
from projects.decorators import api_login_required
from projects.exceptions import PieceError
from projects.pieces import PieceStatus, parse_piece_type
from projects.services import get_project_for_user

from .gateway import ConversationGateway
from .models import Conversation

logger = logging.getLogger(__name__)

CHAT_ROLES = ('user', 'assistant')


def _bad_request(message):
    return JsonResponse({'success': False, 'error': message}, status=400)


def _not_found(message):
    return JsonResponse({'success': False, 'error': message}, status=404)


def _internal_error():
    return JsonResponse({'success': False, 'error': 'Internal server error'}, status=500)


def _load_json(request):
    try:
        data = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _valid_messages(messages):
    if not isinstance(messages, list) or not messages:
        return False
    return all(
        isinstance(msg, dict) and msg.get('role') in CHAT_ROLES and isinstance(msg.get('content'), str)
        for msg in messages
    )


def _conversation_payload(conversation, include_messages=False):
    data = {
        'id': conversation.id,
        'title': conversation.title or f"Conversation {conversation.id}",
        'project_id': str(conversation.project.project_id),
        'piece_type': conversation.piece_type,
        'created_at': conversation.created_at.isoformat(),
        'updated_at': conversation.updated_at.isoformat(),
    }
    if include_messages:
        data['messages'] = [
            {
                'id': msg.id,
                'role': msg.role,
                'content': msg.content,
                'created_at': msg.created_at.isoformat(),
            }
            for msg in conversation.messages.all()
        ]
    return data


@csrf_exempt
@api_login_required
@require_POST
def chat_api(request):
    """Stream an assistant reply for a conversation about one puzzle piece."""
    data = _load_json(request)
    if data is None:
        return _bad_request('Invalid JSON data')

    messages = data.get('messages')
    project_id = data.get('projectId')
    piece_type = data.get('pieceType')
    conversation_id = data.get('conversationId')

    if not messages or not project_id or not piece_type:
        return _bad_request('Missing required fields')
    if not _valid_messages(messages):
        return _bad_request('Messages must be a list of {role, content} with role user or assistant')

    parsed = parse_piece_type(piece_type)
    if parsed is None:
        return _bad_request(f"Unknown piece type: {piece_type}")

    try:
        project = get_project_for_user(request.user, project_id)

        piece = project.pieces.filter(piece_type=parsed).first()
        if piece is None:
            return _not_found('Piece not found')
        if piece.status == PieceStatus.LOCKED:
            return _bad_request('Piece is locked until its prerequisites are complete')

        conversation = None
        if conversation_id:
            try:
                conversation = Conversation.objects.select_related('project').get(pk=conversation_id, project=project)
            except (Conversation.DoesNotExist, ValueError, TypeError):
                return _not_found('Conversation not found')

        stream = ConversationGateway().stream_reply(project, parsed, messages, conversation)
    except PieceError:
        return _not_found('Project not found')
    except Exception:
        logger.exception("Chat API error")
        return _internal_error()

    response = StreamingHttpResponse(stream, content_type='text/plain; charset=utf-8')
    response['Cache-Control'] = 'no-cache'
    response['X-Accel-Buffering'] = 'no'
    return response


@csrf_exempt
@api_login_required
@require_POST
def create_conversation_api(request):
    """Create a conversation for a project, optionally tied to one piece."""
    data = _load_json(request)
    if data is None:
        return _bad_request('Invalid JSON data')

    project_id = data.get('projectId')
    if not project_id:
        return _bad_request('Missing required fields: projectId')

    piece_type = data.get('pieceType')
    parsed = None
    if piece_type:
        parsed = parse_piece_type(piece_type)
        if parsed is None:
            return _bad_request(f"Unknown piece type: {piece_type}")

    try:
        project = get_project_for_user(request.user, project_id)
        piece = project.pieces.filter(piece_type=parsed).first() if parsed else None
        conversation = Conversation.objects.create(
            project=project,
            piece=piece,
            piece_type=parsed.value if parsed else None,
            title=data.get('title') or None,
        )
        logger.info(f"Created conversation {conversation.id} for project {project.project_id}",
                    extra={'easylogs_metadata': {'project_id': str(project.project_id),
                                                 'conversation_id': conversation.id}})
        return JsonResponse(_conversation_payload(conversation), status=201)
    except PieceError:
        return _not_found('Project not found')
    except Exception:
        logger.exception(f"Error creating conversation for project {project_id}")
        return _internal_error()


@api_login_required
@require_GET
def conversation_detail_api(request, conversation_id):
    """Return a conversation with its messages in order."""
    try:
        conversation = Conversation.objects.select_related('project').get(
            pk=conversation_id, project__owner=request.user
        )
        return JsonResponse(_conversation_payload(conversation, include_messages=True))
    except Conversation.DoesNotExist:
        return _not_found('Conversation not found')
    except Exception:
        logger.exception(f"Error loading conversation {conversation_id}")
        return _internal_error()


@api_login_required
@require_GET
def conversation_list_api(request, project_id):
    """Conversations of a project, most recent first."""
    try:
        project = get_project_for_user(request.user, project_id)
        conversations = project.conversations.select_related('project').order_by('-updated_at')
        piece_type = request.GET.get('pieceType')
        if piece_type:
            conversations = conversations.filter(piece_type=piece_type)
        return JsonResponse({'conversations': [_conversation_payload(c) for c in conversations]})
    except PieceError:
        return _not_found('Project not found')
    except Exception:
        logger.exception(f"Error listing conversations for project {project_id}")
        return _internal_error()


@api_login_required
@require_GET
def available_models(request):
    """Get list of configured AI models"""
    return JsonResponse({
        'success': True,
        'default_model': get_default_model_key(),
        'models': get_available_models(),
    })
