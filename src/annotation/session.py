"""Workbench session: the event-handling layer over the store.

A session tracks what the researcher is looking at (active document, current
selection, chat history) and turns UI events into store mutations. Calls to
the AI collaborator are made here; their failures are logged and recorded in
:attr:`AnnotationSession.notices` instead of propagating, and their results
are always applied to the document they were requested for, never to
whichever document happens to be active when they return.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from src.annotation.errors import InvalidSegmentError, UnknownEntityError, ValidationError
from src.annotation.models import DOCUMENT_TYPES, MEDIA_TYPES, ChatMessage, Code, Comment, Document, Quote, Segment, Theme
from src.annotation.resolver import Run, resolve
from src.annotation.selection import SelectionContext, map_selection
from src.annotation.store import AnnotationStore
from src.annotation.themes import ThemeApplication
from src.collaborator.base_collaborator import BaseCollaborator, CollaboratorError, is_new_code

logger = logging.getLogger(__name__)


class AnnotationSession:
    """One researcher's working state over an :class:`AnnotationStore`.

    Attributes:
        store: The annotation store; every mutation goes through it.
        collaborator: AI collaborator, or None when AI features are off.
        active_document_id: Document currently shown.
        selected_segment: Live, not yet coded selection (at most one).
        chat_history: Messages exchanged with the assistant.
        notices: User-facing messages produced by failed AI calls.
    """

    def __init__(self, store: AnnotationStore, collaborator: Optional[BaseCollaborator] = None) -> None:
        self.store = store
        self.collaborator = collaborator
        self.active_document_id: Optional[str] = None
        self.selected_segment: Optional[Segment] = None
        self.chat_history: List[ChatMessage] = []
        self.notices: List[str] = []

        documents = store.documents
        if documents:
            self.active_document_id = documents[0].id

    @property
    def active_document(self) -> Optional[Document]:
        if self.active_document_id is None:
            return None
        return self.store.get_document(self.active_document_id)

    # ------------------------------------------------------------------ #
    # Navigation and selection
    # ------------------------------------------------------------------ #

    def select_document(self, document_id: Optional[str]) -> None:
        if document_id is not None and self.store.get_document(document_id) is None:
            raise UnknownEntityError("document", document_id)
        if document_id != self.active_document_id:
            self.selected_segment = None
        self.active_document_id = document_id

    def select_text(self, raw_selected_text: Optional[str], structural_offset: Optional[int] = None) -> Optional[Segment]:
        """Map a selection in the active document and make it the live segment.

        An empty selection, or one that cannot be found in the document,
        clears the live segment.
        """
        document = self.active_document
        source = document.offset_text if document is not None else None
        if source is None:
            self.selected_segment = None
            return None

        context = SelectionContext(full_text=source, structural_offset=structural_offset)
        self.selected_segment = map_selection(raw_selected_text, context)
        return self.selected_segment

    def clear_selection(self) -> None:
        self.selected_segment = None

    def render(self, document_id: Optional[str] = None) -> List[Run]:
        """Resolve a document's quotes into runs (active document by default)."""
        target_id = document_id or self.active_document_id
        document = self.store.get_document(target_id) if target_id else None
        if document is None or document.offset_text is None:
            return []
        return resolve(document.offset_text, self.store.quotes_for_document(document.id), self.store.codes)

    # ------------------------------------------------------------------ #
    # Documents
    # ------------------------------------------------------------------ #

    def import_document(
        self,
        title: str,
        doc_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Document:
        """Add a document and make it active.

        Audio and video documents are added with ``is_transcribing`` set and
        then transcribed; the flag is cleared whether or not that succeeds.

        Raises:
            ValidationError: If title or content is blank or the type is unknown.
        """
        if not title or not title.strip():
            raise ValidationError("Document title must not be empty")
        if not content or not content.strip():
            raise ValidationError("Document content must not be empty")
        if doc_type not in DOCUMENT_TYPES:
            raise ValidationError(f"Unsupported document type: {doc_type!r}")

        needs_transcript = doc_type in MEDIA_TYPES and self.collaborator is not None
        document = self.store.add_document(
            title.strip(), doc_type, content, metadata=metadata, is_transcribing=needs_transcript
        )
        self.select_document(document.id)

        if needs_transcript:
            self.transcribe(document.id)
        return document

    def transcribe(self, document_id: str) -> Optional[str]:
        """Transcribe a media document and store the transcript on it."""
        document = self.store.get_document(document_id)
        if document is None:
            raise UnknownEntityError("document", document_id)
        if self.collaborator is None:
            self.store.abandon_transcription(document_id)
            return None

        try:
            transcript = self.collaborator.transcribe_media(document.content)
        except CollaboratorError as e:
            logger.warning(f"Transcription failed for document {document_id}: {e}")
            self.notices.append(f"Transcription failed for {document.title}: {e}")
            self.store.abandon_transcription(document_id)
            return None

        self.store.finish_transcription(document_id, transcript)
        return transcript

    def delete_document(self, document_id: str) -> int:
        removed = self.store.delete_document(document_id)
        if self.active_document_id == document_id:
            remaining = self.store.documents
            self.select_document(remaining[0].id if remaining else None)
        return removed

    # ------------------------------------------------------------------ #
    # Codes and quotes
    # ------------------------------------------------------------------ #

    def create_code(self, name: str, description: str = "") -> Code:
        if not name or not name.strip():
            raise ValidationError("Code name must not be empty")
        return self.store.add_code(name.strip(), description.strip())

    def apply_code(self, code_id: str) -> Quote:
        """Code the live segment in the active document and clear the selection.

        Raises:
            InvalidSegmentError: If nothing is selected.
        """
        document = self.active_document
        if self.selected_segment is None or document is None:
            raise InvalidSegmentError("Select some text before applying a code")
        quote = self.store.add_quote(document.id, code_id, self.selected_segment)
        self.selected_segment = None
        return quote

    def apply_suggestion(self, suggestion: Code) -> Quote:
        """Apply a suggested code to the live segment.

        A suggestion matching an existing code name (case-insensitive) reuses
        that code; an unmatched new suggestion is created first.
        """
        code = self.store.find_code_by_name(suggestion.name)
        if code is None and not is_new_code(suggestion):
            code = self.store.get_code(suggestion.id)
        if code is None:
            code = self.create_code(suggestion.name, suggestion.description)
        return self.apply_code(code.id)

    def reassign_quotes(self, quote_ids: Iterable[str], new_code_id: Optional[str]) -> int:
        ids = list(quote_ids)
        if not ids:
            raise ValidationError("Select at least one quote to reassign")
        if not new_code_id:
            raise ValidationError("Choose a destination code")
        return self.store.reassign_quotes(ids, new_code_id)

    def add_comment(self, quote_id: str, text: str) -> Comment:
        if not text or not text.strip():
            raise ValidationError("Comment must not be empty")
        return self.store.add_comment(quote_id, text.strip())

    # ------------------------------------------------------------------ #
    # AI collaboration
    # ------------------------------------------------------------------ #

    def suggest_codes(self) -> List[Code]:
        """Ask for codes for the live segment; empty when unavailable or failed."""
        document = self.active_document
        if (
            self.collaborator is None
            or self.selected_segment is None
            or document is None
            or document.type != "text"
        ):
            return []
        try:
            return self.collaborator.suggest_codes(self.selected_segment, document, self.store.codes)
        except CollaboratorError as e:
            logger.warning(f"Code suggestion failed: {e}")
            self.notices.append(str(e))
            return []

    def detect_themes(self, document_id: Optional[str] = None) -> List[Theme]:
        target_id = document_id or self.active_document_id
        document = self.store.get_document(target_id) if target_id else None
        if document is None or self.collaborator is None:
            return []
        try:
            return self.collaborator.detect_themes(document, self.store.codes)
        except CollaboratorError as e:
            logger.warning(f"Theme detection failed for document {document.id}: {e}")
            self.notices.append(str(e))
            return []

    def apply_themes(self, themes: Sequence[Theme], document_id: Optional[str] = None) -> ThemeApplication:
        target_id = document_id or self.active_document_id
        if target_id is None:
            raise ValidationError("No document to apply themes to")
        return self.store.apply_themes(themes, target_id)

    def ask(self, question: str) -> ChatMessage:
        """Send a chat question; a failure becomes an ``Error: ...`` reply."""
        if not question or not question.strip():
            raise ValidationError("Question must not be empty")

        self.chat_history.append(ChatMessage(sender="user", text=question.strip()))
        if self.collaborator is None:
            reply = ChatMessage(sender="ai", text="Error: AI assistant is not configured.")
        else:
            try:
                answer = self.collaborator.answer_question(
                    question.strip(),
                    list(self.chat_history),
                    self.store.documents,
                    self.store.codes,
                    self.store.quotes,
                )
                reply = ChatMessage(sender="ai", text=answer)
            except CollaboratorError as e:
                logger.warning(f"Chat request failed: {e}")
                reply = ChatMessage(sender="ai", text=f"Error: {e}")
        self.chat_history.append(reply)
        return reply
