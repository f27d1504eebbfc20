"""Core data models for documents, codes, quotes and comments."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DOCUMENT_TYPES = ("text", "image", "audio", "video")
MEDIA_TYPES = ("audio", "video")


@dataclass
class Document:
    """A source document loaded into the workspace.

    ``content`` holds the text for text documents and a data URL for media.
    Offsets of quotes are measured against :attr:`offset_text`.
    """
    id: str
    title: str
    type: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    transcript: Optional[str] = None
    is_transcribing: bool = False

    @property
    def offset_text(self) -> Optional[str]:
        """Return the text quote offsets refer to, or None if there is none."""
        if self.type == "text":
            return self.content
        if self.type in MEDIA_TYPES:
            return self.transcript
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "content": self.content,
            "metadata": self.metadata,
            "transcript": self.transcript,
            "isTranscribing": self.is_transcribing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            title=data["title"],
            type=data["type"],
            content=data["content"],
            metadata=data.get("metadata") or {},
            transcript=data.get("transcript"),
            is_transcribing=bool(data.get("isTranscribing", False)),
        )


@dataclass
class Code:
    """A named, colored tag applied to quotes."""
    id: str
    name: str
    description: str
    color: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Code":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            color=data["color"],
        )


@dataclass
class Quote:
    """A coded span within a document.

    ``start``/``end`` are character offsets into the document's offset text.
    ``region`` and ``timestamp`` are reserved for image and audio/video quotes.
    """
    id: str
    document_id: str
    code_id: str
    text: str
    start: Optional[int] = None
    end: Optional[int] = None
    region: Optional[Dict[str, float]] = None
    timestamp: Optional[Dict[str, float]] = None

    @property
    def has_offsets(self) -> bool:
        return self.start is not None and self.end is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "documentId": self.document_id,
            "codeId": self.code_id,
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "region": self.region,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Quote":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            document_id=data["documentId"],
            code_id=data["codeId"],
            text=data["text"],
            start=data.get("start"),
            end=data.get("end"),
            region=data.get("region"),
            timestamp=data.get("timestamp"),
        )


@dataclass
class Comment:
    """A researcher's note on a quote."""
    id: str
    quote_id: str
    text: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "quoteId": self.quote_id,
            "text": self.text,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        """Deserialize from dictionary."""
        return cls(
            id=data["id"],
            quote_id=data["quoteId"],
            text=data["text"],
            created_at=data["createdAt"],
        )


@dataclass(frozen=True)
class Segment:
    """The current, not yet coded, text selection."""
    text: str
    start: int
    end: int


@dataclass
class Theme:
    """A proposed code plus example quote texts, not yet in the store."""
    name: str
    description: str
    quotes: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Theme":
        code = data.get("code") or {}
        return cls(
            name=str(code.get("name", "")),
            description=str(code.get("description", "")),
            quotes=[str(item) for item in data.get("quotes") or []],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": {"name": self.name, "description": self.description},
            "quotes": list(self.quotes),
        }


@dataclass(frozen=True)
class ChatMessage:
    """One chat turn; sender is "user" or "ai"."""
    sender: str
    text: str
