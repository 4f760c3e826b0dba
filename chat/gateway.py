"""
Conversation gateway: assembles piece conversations and streams replies.

The gateway owns everything between an authorized chat request and the LLM
provider: project context, the system prompt, message persistence, and the
text stream handed back to the view.
"""
import logging
from typing import Any, AsyncGenerator, Dict, List, Optional

from asgiref.sync import sync_to_async
from django.utils import timezone

from factory.llm import BaseLLMProvider, ProviderNotConfigured, get_provider
from factory.prompts import build_conversation_prompt
from projects.pieces import PIECE_METADATA, PieceStatus

from .models import Conversation, Message

logger = logging.getLogger(__name__)


class ConversationGateway:

    def __init__(self, provider: Optional[BaseLLMProvider] = None):
        self.provider = provider or get_provider()

    def build_context(self, project) -> Dict[str, Any]:
        """Project name, description and the summaries of complete pieces in piece order."""
        completed = (
            project.pieces
            .filter(status=PieceStatus.COMPLETE, summary__isnull=False)
            .exclude(summary='')
            .values_list('piece_type', 'summary')
        )
        completed = sorted(completed, key=lambda row: PIECE_METADATA[row[0]].order if row[0] in PIECE_METADATA else 0)
        return {
            'name': project.name,
            'description': project.description,
            'completed_pieces': [{'type': piece_type, 'summary': summary} for piece_type, summary in completed],
        }

    def record_user_message(self, conversation: Optional[Conversation], messages: List[Dict[str, str]]):
        if conversation is None or not messages:
            return None
        last = messages[-1]
        if last.get('role') != 'user':
            return None
        return Message.objects.create(conversation=conversation, role='user', content=last.get('content') or '')

    def stream_reply(self, project, piece_type: str, messages: List[Dict[str, str]],
                     conversation: Optional[Conversation] = None) -> AsyncGenerator[str, None]:
        """
        Persist the user's message and return the stream of reply chunks.

        The prompt is built and the user message saved before this returns;
        only the provider call is deferred until the stream is iterated.
        """
        system = build_conversation_prompt(piece_type, self.build_context(project))
        self.record_user_message(conversation, messages)
        logger.info(f"Streaming {piece_type} reply for project {project.project_id}",
                    extra={'easylogs_metadata': {
                        'project_id': str(project.project_id),
                        'conversation_id': conversation.id if conversation else None,
                    }})
        return self._stream(system, messages, conversation)

    async def _stream(self, system: str, messages: List[Dict[str, str]],
                      conversation: Optional[Conversation]) -> AsyncGenerator[str, None]:
        chunks = []
        try:
            async for chunk in self.provider.generate_stream(messages, system=system):
                chunks.append(chunk)
                yield chunk
        except ProviderNotConfigured as e:
            logger.warning(f"LLM provider not configured: {e}")
            yield f"Error: {e}"
            return
        except Exception as e:
            logger.exception(f"LLM stream failed for conversation {conversation.id if conversation else None}")
            yield f"\n\nError: {e}"
            return

        if conversation is not None and chunks:
            await sync_to_async(self._save_reply)(conversation, ''.join(chunks))

    def _save_reply(self, conversation: Conversation, text: str):
        Message.objects.create(conversation=conversation, role='assistant', content=text)
        Conversation.objects.filter(pk=conversation.pk).update(updated_at=timezone.now())
