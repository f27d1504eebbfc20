"""In-memory annotation store.

The store owns the four entity collections (documents, codes, quotes,
comments) and is the only code allowed to mutate them. References between
entities are soft foreign keys: deleting a document or a code cascades to the
quotes that point at it, while comments on removed quotes are kept.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from src.annotation.errors import InvalidSegmentError, UnknownEntityError
from src.annotation.models import DOCUMENT_TYPES, Code, Comment, Document, Quote, Segment, Theme
from src.annotation.themes import ThemeApplication, apply_themes

logger = logging.getLogger(__name__)


def default_id_factory(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AnnotationStore:
    """Documents, codes, quotes and comments with referential rules.

    Attributes:
        palette: Ordered code colors; the n-th code created gets
            ``palette[n % len(palette)]`` where n is the code count at the time.

    Example:
        >>> store = AnnotationStore(palette=["#FCA5A5", "#86EFAC"])
        >>> doc = store.add_document("Interview", "text", "AB CD EF")
        >>> code = store.add_code("Design", "Comments on visual design")
        >>> quote = store.add_quote(doc.id, code.id, Segment("AB", 0, 2))
    """

    def __init__(
        self,
        palette: Sequence[str],
        id_factory: Optional[Callable[[str], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        if not palette:
            raise ValueError("palette must contain at least one color")
        self.palette = list(palette)
        self._new_id = id_factory or default_id_factory
        self._clock = clock or utc_now
        self._documents: List[Document] = []
        self._codes: List[Code] = []
        self._quotes: List[Quote] = []
        self._comments: List[Comment] = []

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> "AnnotationStore":
        return cls(palette=settings.annotation.palette, **kwargs)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def documents(self) -> List[Document]:
        return list(self._documents)

    @property
    def codes(self) -> List[Code]:
        return list(self._codes)

    @property
    def quotes(self) -> List[Quote]:
        return list(self._quotes)

    @property
    def comments(self) -> List[Comment]:
        return list(self._comments)

    def get_document(self, document_id: str) -> Optional[Document]:
        return next((doc for doc in self._documents if doc.id == document_id), None)

    def get_code(self, code_id: str) -> Optional[Code]:
        return next((code for code in self._codes if code.id == code_id), None)

    def get_quote(self, quote_id: str) -> Optional[Quote]:
        return next((quote for quote in self._quotes if quote.id == quote_id), None)

    def find_code_by_name(self, name: str) -> Optional[Code]:
        """Case-insensitive lookup by code name."""
        wanted = name.strip().lower()
        return next((code for code in self._codes if code.name.strip().lower() == wanted), None)

    def quotes_for_document(self, document_id: str) -> List[Quote]:
        return [quote for quote in self._quotes if quote.document_id == document_id]

    def quotes_for_code(self, code_id: str) -> List[Quote]:
        return [quote for quote in self._quotes if quote.code_id == code_id]

    def comments_for_quote(self, quote_id: str) -> List[Comment]:
        """Comments on a quote, oldest first."""
        matching = [comment for comment in self._comments if comment.quote_id == quote_id]
        return sorted(matching, key=lambda comment: _parse_timestamp(comment.created_at))

    def quote_counts(self) -> Dict[str, int]:
        """Number of quotes per code id (codes without quotes map to 0)."""
        counts = Counter(quote.code_id for quote in self._quotes)
        return {code.id: counts.get(code.id, 0) for code in self._codes}

    # ------------------------------------------------------------------ #
    # Documents
    # ------------------------------------------------------------------ #

    def add_document(
        self,
        title: str,
        doc_type: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        transcript: Optional[str] = None,
        is_transcribing: bool = False,
    ) -> Document:
        if doc_type not in DOCUMENT_TYPES:
            raise ValueError(f"Unsupported document type: {doc_type!r}")
        document = Document(
            id=self._new_id("doc"),
            title=title,
            type=doc_type,
            content=content,
            metadata=dict(metadata or {}),
            transcript=transcript,
            is_transcribing=is_transcribing,
        )
        self._documents.append(document)
        logger.debug(f"Added {doc_type} document {document.id} ({title!r})")
        return document

    def delete_document(self, document_id: str) -> int:
        """Remove a document and its quotes. Returns the number of quotes removed."""
        self._documents = [doc for doc in self._documents if doc.id != document_id]
        removed = self._remove_quotes(lambda quote: quote.document_id == document_id)
        if removed:
            logger.info(f"Deleted document {document_id} and {removed} of its quotes")
        return removed

    def finish_transcription(self, document_id: str, transcript: str) -> Optional[Document]:
        """Store a finished transcript on the document it was requested for."""
        document = self.get_document(document_id)
        if document is None:
            logger.warning(f"Transcript arrived for deleted document {document_id}; discarding")
            return None
        document.transcript = transcript
        document.is_transcribing = False
        return document

    def abandon_transcription(self, document_id: str) -> Optional[Document]:
        """Clear the in-progress flag after a failed transcription."""
        document = self.get_document(document_id)
        if document is not None:
            document.is_transcribing = False
        return document

    # ------------------------------------------------------------------ #
    # Codes
    # ------------------------------------------------------------------ #

    def next_color(self, offset: int = 0) -> str:
        return self.palette[(len(self._codes) + offset) % len(self.palette)]

    def add_code(self, name: str, description: str = "") -> Code:
        code = Code(id=self._new_id("code"), name=name, description=description, color=self.next_color())
        self._codes.append(code)
        logger.debug(f"Added code {code.id} ({name!r}, {code.color})")
        return code

    def update_code(
        self,
        code_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Code:
        code = self.get_code(code_id)
        if code is None:
            raise UnknownEntityError("code", code_id)
        if name is not None:
            code.name = name
        if description is not None:
            code.description = description
        return code

    def delete_code(self, code_id: str) -> int:
        """Remove a code and every quote that uses it. Returns quotes removed."""
        self._codes = [code for code in self._codes if code.id != code_id]
        removed = self._remove_quotes(lambda quote: quote.code_id == code_id)
        if removed:
            logger.info(f"Deleted code {code_id} and {removed} of its quotes")
        return removed

    # ------------------------------------------------------------------ #
    # Quotes and comments
    # ------------------------------------------------------------------ #

    def add_quote(self, document_id: str, code_id: str, segment: Optional[Segment]) -> Quote:
        if segment is None:
            raise InvalidSegmentError("No text segment is selected")
        document = self.get_document(document_id)
        if document is None:
            raise UnknownEntityError("document", document_id)
        if self.get_code(code_id) is None:
            raise UnknownEntityError("code", code_id)

        source = document.offset_text
        if source is None:
            raise InvalidSegmentError(f"Document {document_id} has no text to quote")
        if not 0 <= segment.start <= segment.end <= len(source):
            raise InvalidSegmentError(
                f"Segment [{segment.start}, {segment.end}) is outside document {document_id} "
                f"(length {len(source)})"
            )
        if source[segment.start:segment.end] != segment.text:
            raise InvalidSegmentError(
                f"Segment text does not match document {document_id} at [{segment.start}, {segment.end})"
            )

        quote = Quote(
            id=self._new_id("quote"),
            document_id=document_id,
            code_id=code_id,
            text=segment.text,
            start=segment.start,
            end=segment.end,
        )
        self._quotes.append(quote)
        return quote

    def reassign_quotes(self, quote_ids: Iterable[str], new_code_id: str) -> int:
        """Point the given quotes at ``new_code_id``. Returns the number updated."""
        wanted = set(quote_ids)
        updated = 0
        for quote in self._quotes:
            if quote.id in wanted:
                quote.code_id = new_code_id
                updated += 1
        logger.debug(f"Reassigned {updated} quotes to code {new_code_id}")
        return updated

    def add_comment(self, quote_id: str, text: str) -> Comment:
        comment = Comment(
            id=self._new_id("comment"),
            quote_id=quote_id,
            text=text,
            created_at=self._clock().isoformat(),
        )
        self._comments.append(comment)
        return comment

    # ------------------------------------------------------------------ #
    # Themes
    # ------------------------------------------------------------------ #

    def apply_themes(self, themes: Sequence[Theme], document_id: str) -> ThemeApplication:
        """Create a code per theme and the quotes found in the document."""
        document = self.get_document(document_id)
        if document is None:
            raise UnknownEntityError("document", document_id)

        application = apply_themes(
            themes,
            source_text=document.offset_text,
            document_id=document_id,
            existing_code_count=len(self._codes),
            palette=self.palette,
            new_id=self._new_id,
        )
        self._codes.extend(application.codes)
        self._quotes.extend(application.quotes)
        return application

    # ------------------------------------------------------------------ #
    # Snapshots
    # ------------------------------------------------------------------ #

    def snapshot(self) -> Dict[str, Any]:
        """Serialize the four collections to plain data."""
        return {
            "documents": [doc.to_dict() for doc in self._documents],
            "codes": [code.to_dict() for code in self._codes],
            "quotes": [quote.to_dict() for quote in self._quotes],
            "comments": [comment.to_dict() for comment in self._comments],
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], palette: Sequence[str], **kwargs: Any) -> "AnnotationStore":
        store = cls(palette=palette, **kwargs)
        store._documents = [Document.from_dict(item) for item in data.get("documents", [])]
        store._codes = [Code.from_dict(item) for item in data.get("codes", [])]
        store._quotes = [Quote.from_dict(item) for item in data.get("quotes", [])]
        store._comments = [Comment.from_dict(item) for item in data.get("comments", [])]

        for quote in store._quotes:
            store._check_restored_quote(quote)
        for comment in store._comments:
            _parse_timestamp(comment.created_at)
        return store

    def _check_restored_quote(self, quote: Quote) -> None:
        """Reject restored offsets that ``add_quote`` would never have accepted.

        Raises:
            InvalidSegmentError: If the range is inverted or outside the source text.
        """
        if not quote.has_offsets:
            return
        if not isinstance(quote.start, int) or not isinstance(quote.end, int):
            raise InvalidSegmentError(f"Quote {quote.id} has non-integer offsets")
        if not 0 <= quote.start <= quote.end:
            raise InvalidSegmentError(f"Quote {quote.id} has an invalid range [{quote.start}, {quote.end})")
        document = self.get_document(quote.document_id)
        source = document.offset_text if document is not None else None
        if source is not None and quote.end > len(source):
            raise InvalidSegmentError(
                f"Quote {quote.id} range [{quote.start}, {quote.end}) is outside document "
                f"{quote.document_id} (length {len(source)})"
            )

    def _remove_quotes(self, predicate: Callable[[Quote], bool]) -> int:
        before = len(self._quotes)
        self._quotes = [quote for quote in self._quotes if not predicate(quote)]
        return before - len(self._quotes)


def _parse_timestamp(value: str) -> datetime:
    # accept the trailing "Z" form
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
