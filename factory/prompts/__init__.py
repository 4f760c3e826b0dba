"""
Prompt templates for piece conversations.

Templates are markdown files under settings.PROMPTS_DIR: a shared
``system.md`` and one ``pieces/<piece_type>.md`` per puzzle piece. Loaded text
is kept in a process-wide cache that is only emptied by an explicit clear,
so edits to the files need ``clear_prompt_cache()`` (or a restart) to show up.
"""
import logging
import threading
from pathlib import Path
from typing import Dict, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


def _prompts_dir() -> Path:
    return Path(settings.PROMPTS_DIR)


class PromptCache:
    """Thread-safe map of template path to template text."""

    def __init__(self, base_dir: Optional[Path] = None):
        self._base_dir = base_dir
        self._entries: Dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def base_dir(self) -> Path:
        return Path(self._base_dir) if self._base_dir else _prompts_dir()

    def load(self, relative_path: str) -> str:
        with self._lock:
            if relative_path in self._entries:
                return self._entries[relative_path]

        full_path = self.base_dir / relative_path
        content = full_path.read_text(encoding='utf-8')
        logger.debug(f"Loaded prompt template {full_path}")

        with self._lock:
            # Another thread may have loaded it meanwhile; first write wins
            return self._entries.setdefault(relative_path, content)

    def __contains__(self, relative_path):
        with self._lock:
            return relative_path in self._entries

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def clear(self):
        with self._lock:
            self._entries.clear()


PROMPT_CACHE = PromptCache()


def get_system_prompt() -> str:
    return PROMPT_CACHE.load('system.md')


def get_piece_prompt(piece_type: str) -> str:
    piece_type = getattr(piece_type, 'value', piece_type)
    return PROMPT_CACHE.load(f'pieces/{piece_type}.md')


def _context_section(context: dict) -> str:
    section = "\n\n## Current Project Context\n"
    section += f"**Project Name:** {context['name']}\n"

    if context.get('description'):
        section += f"**Description:** {context['description']}\n"

    completed = context.get('completed_pieces') or []
    if completed:
        section += "\n### Previously Completed Pieces\n"
        for piece in completed:
            piece_type = str(piece['type'])
            heading = piece_type[:1].upper() + piece_type[1:]
            section += f"\n**{heading}:**\n{piece['summary']}\n"

    return section


def build_conversation_prompt(piece_type: str, context: Optional[dict] = None) -> str:
    """
    Assemble the system prompt for a conversation about one piece.

    `context` is a dict with ``name``, optional ``description`` and optional
    ``completed_pieces`` (a list of ``{'type': ..., 'summary': ...}``).
    """
    system_prompt = get_system_prompt()
    piece_prompt = get_piece_prompt(piece_type)
    context_section = _context_section(context) if context else ''
    return f"{system_prompt}{context_section}\n\n---\n\n{piece_prompt}"


def clear_prompt_cache():
    PROMPT_CACHE.clear()
