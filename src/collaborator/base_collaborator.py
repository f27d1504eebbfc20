"""Abstract interface of the AI collaborator.

The annotation core never talks to a model directly. It asks a
:class:`BaseCollaborator` for code suggestions, theme proposals,
transcripts and chat answers, so the core can be tested with a fake.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from src.annotation.models import ChatMessage, Code, Document, Quote, Segment, Theme

# Suggested codes that do not exist in the store yet carry this id prefix.
NEW_CODE_PREFIX = "new-"


class CollaboratorError(RuntimeError):
    """Raised when an AI collaborator call fails.

    The message is suitable for showing to the user.
    """


def is_new_code(code: Code) -> bool:
    return code.id.startswith(NEW_CODE_PREFIX)


class BaseCollaborator(ABC):
    """AI operations the workbench relies on."""

    @abstractmethod
    def suggest_codes(
        self,
        segment: Segment,
        document: Document,
        existing_codes: Sequence[Code],
    ) -> List[Code]:
        """Suggest codes for a selected segment.

        Existing codes are returned with their real ids and colors. Codes that
        should be created have ids starting with ``NEW_CODE_PREFIX``.

        Raises:
            CollaboratorError: If the call fails.
        """

    @abstractmethod
    def detect_themes(self, document: Document, existing_codes: Sequence[Code]) -> List[Theme]:
        """Propose themes for a text document.

        Raises:
            CollaboratorError: If the document is not a text document or the call fails.
        """

    @abstractmethod
    def transcribe_media(self, media_content: str) -> str:
        """Return a verbatim transcript of an audio or video data URL.

        Raises:
            CollaboratorError: If the content is not audio/video or the call fails.
        """

    @abstractmethod
    def answer_question(
        self,
        question: str,
        history: Sequence[ChatMessage],
        documents: Sequence[Document],
        codes: Sequence[Code],
        quotes: Sequence[Quote],
    ) -> str:
        """Answer a free-text question about the corpus.

        Raises:
            CollaboratorError: If the call fails.
        """
