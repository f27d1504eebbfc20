"""AI collaborator backed by a chat LLM.

Prompt templates are read from ``config/prompts/*.txt`` and used as system
instructions; the user prompt carries the document, codes and question.
Structured replies (code suggestions, themes) are requested as JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from src.annotation.models import ChatMessage, Code, Document, Quote, Segment, Theme
from src.collaborator.base_collaborator import BaseCollaborator, CollaboratorError
from src.libs.llm.base_llm import Message

if TYPE_CHECKING:
    from src.core.settings import Settings
    from src.libs.llm.base_llm import BaseLLM

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent.parent.parent / "config" / "prompts"

_PROMPT_NAMES = ("suggest_codes", "detect_themes", "answer_question", "transcribe_media")


def parse_data_url(data_url: str) -> Tuple[str, str]:
    """Split a ``data:<mime>;base64,<payload>`` URL into ``(mime_type, payload)``.

    Raises:
        CollaboratorError: If the URL is malformed or not audio/video.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header or not payload:
        raise CollaboratorError("Invalid data URL format for transcription.")

    mime_type = header.split(":", 1)[1].split(";", 1)[0] if ":" in header else ""
    if not mime_type.startswith(("audio/", "video/")):
        raise CollaboratorError(f"Unsupported MIME type for transcription: {mime_type or 'unknown'}")
    return mime_type, payload


def extract_json_list(response: str, key: str) -> List[Any]:
    """Pull a JSON array out of a model reply.

    Accepts a bare array, an object holding the array under ``key`` (what
    JSON-constrained models tend to return) or a single object, which is
    wrapped in a list.

    Raises:
        ValueError: If no JSON can be parsed from the reply.
    """
    text = response.strip()
    array_start, array_end = text.find("["), text.rfind("]") + 1
    object_start, object_end = text.find("{"), text.rfind("}") + 1

    if array_start != -1 and array_end > 0 and (object_start == -1 or array_start < object_start):
        candidate = text[array_start:array_end]
    elif object_start != -1 and object_end > 0:
        candidate = text[object_start:object_end]
    else:
        raise ValueError("No valid JSON found in LLM response")

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ValueError(f"Failed to parse JSON from LLM response: {e}") from e

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        if isinstance(parsed.get(key), list):
            return parsed[key]
        return [parsed]
    raise ValueError(f"Expected JSON array or object, got {type(parsed).__name__}")


class LLMCollaborator(BaseCollaborator):
    """Collaborator that drives a :class:`BaseLLM`.

    Attributes:
        llm: The chat model used for every operation.
        prompts: System instructions keyed by operation name.
        context_chars: How much of the document is sent with a suggestion request.
        placeholder_color: Color given to suggested codes that do not exist yet.
    """

    def __init__(
        self,
        settings: Settings,
        llm: Optional[BaseLLM] = None,
        prompts_dir: Optional[Path] = None,
    ) -> None:
        self.settings = settings
        self.context_chars = settings.annotation.context_chars
        self.placeholder_color = settings.annotation.placeholder_color

        if llm is not None:
            self.llm = llm
            logger.debug("LLMCollaborator initialized with injected LLM instance")
        else:
            from src.libs.llm.llm_factory import LLMFactory
            try:
                self.llm = LLMFactory.create(settings)
            except Exception as e:
                raise ValueError(
                    f"Failed to initialize LLM for collaborator: {e}. "
                    "Please ensure LLM configuration is valid in settings.yaml"
                ) from e
            logger.debug(f"LLMCollaborator initialized with LLM provider: {type(self.llm).__name__}")

        self.prompts = self._load_prompts(prompts_dir or DEFAULT_PROMPTS_DIR)

    def suggest_codes(
        self,
        segment: Segment,
        document: Document,
        existing_codes: Sequence[Code],
    ) -> List[Code]:
        source = document.offset_text or ""
        context = source[: self.context_chars]
        if len(source) > self.context_chars:
            context += "..."
        existing = [{"id": c.id, "name": c.name, "description": c.description} for c in existing_codes]

        prompt = (
            f"DOCUMENT CONTEXT:\n---\n{context}\n---\n"
            f"SELECTED SEGMENT:\n---\n\"{segment.text}\"\n---\n"
            f"EXISTING CODES:\n---\n{json.dumps(existing, indent=2, ensure_ascii=False)}\n---\n"
            "Based on the selected segment and its context, suggest relevant codes."
        )
        items = self._ask_for_list(
            prompt, "suggest_codes", "codes", "Failed to get AI suggestions."
        )

        colors_by_id = {code.id: code.color for code in existing_codes}
        suggestions = []
        for item in items:
            if not isinstance(item, dict) or not item.get("name"):
                logger.warning(f"Ignoring malformed code suggestion: {item!r}")
                continue
            code_id = str(item.get("id") or f"new-{len(suggestions)}")
            suggestions.append(
                Code(
                    id=code_id,
                    name=str(item["name"]),
                    description=str(item.get("description", "")),
                    color=colors_by_id.get(code_id, self.placeholder_color),
                )
            )
        return suggestions

    def detect_themes(self, document: Document, existing_codes: Sequence[Code]) -> List[Theme]:
        if document.type != "text":
            raise CollaboratorError("Theme detection is currently only supported for text documents.")

        names = json.dumps([code.name for code in existing_codes], indent=2, ensure_ascii=False)
        prompt = (
            f"DOCUMENT:\n---\n{document.content}\n---\n"
            f"EXISTING CODES TO AVOID DUPLICATING:\n---\n{names}\n---\n"
            "Analyze the document and identify the major themes as instructed."
        )
        items = self._ask_for_list(
            prompt, "detect_themes", "themes", "Failed to perform AI theme detection."
        )

        themes = []
        for item in items:
            if not isinstance(item, dict) or not isinstance(item.get("code"), dict):
                logger.warning(f"Ignoring malformed theme: {item!r}")
                continue
            theme = Theme.from_dict(item)
            if theme.name:
                themes.append(theme)
        return themes

    def transcribe_media(self, media_content: str) -> str:
        mime_type, payload = parse_data_url(media_content)
        messages = [
            Message(role="system", content=self.prompts["transcribe_media"]),
            Message(role="user", content=f"Transcribe this {mime_type} file verbatim.", images=[payload]),
        ]
        try:
            return self.llm.chat(messages).content.strip()
        except Exception as e:
            logger.error(f"Transcription failed: {e}")
            raise CollaboratorError(
                "Failed to transcribe media file. The file may be unsupported or the API call failed."
            ) from e

    def answer_question(
        self,
        question: str,
        history: Sequence[ChatMessage],
        documents: Sequence[Document],
        codes: Sequence[Code],
        quotes: Sequence[Quote],
    ) -> str:
        document_lines = "\n".join(f"- {d.title} (type: {d.type})" for d in documents)
        code_lines = "\n".join(f"- {c.name}: {c.description}" for c in codes)
        history_text = "\n".join(
            f"{'User' if m.sender == 'user' else 'AI'}: {m.text}" for m in history
        )
        prompt = (
            f"CONTEXT:\nDOCUMENTS:\n{document_lines}\n\nCODES (THEMES):\n{code_lines}\n\n"
            f"QUOTES: {len(quotes)} quotes have been created linking documents to codes.\n---\n"
            f"CHAT HISTORY:\n{history_text}\n---\n"
            f"NEW QUESTION: {question}"
        )
        try:
            return self.llm.generate(prompt, system=self.prompts["answer_question"])
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            raise CollaboratorError("Failed to get response from AI assistant.") from e

    def _ask_for_list(self, prompt: str, prompt_name: str, key: str, failure: str) -> List[Any]:
        try:
            response = self.llm.generate(prompt, system=self.prompts[prompt_name], json_mode=True)
            return extract_json_list(response, key)
        except Exception as e:
            logger.error(f"{prompt_name} failed: {e}")
            raise CollaboratorError(f"{failure} Please check the model configuration and try again.") from e

    @staticmethod
    def _load_prompts(prompts_dir: Path) -> Dict[str, str]:
        prompts = {}
        for name in _PROMPT_NAMES:
            path = prompts_dir / f"{name}.txt"
            if not path.exists():
                raise FileNotFoundError(
                    f"Prompt template not found at {path}. "
                    f"Please ensure config/prompts/{name}.txt exists."
                )
            prompts[name] = path.read_text(encoding="utf-8").strip()
        return prompts
