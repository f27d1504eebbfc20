"""
Annotation Core.

This package contains the span-annotation model:
- Entity models (documents, codes, quotes, comments)
- Span resolver and color contrast
- Annotation store, theme merger and selection mapper
- Session facade over the store (src.annotation.session)
"""

from src.annotation.errors import AnnotationError, InvalidSegmentError, UnknownEntityError, ValidationError
from src.annotation.models import ChatMessage, Code, Comment, Document, Quote, Segment, Theme
from src.annotation.resolver import CodedRun, PlainRun, resolve
from src.annotation.store import AnnotationStore

__all__ = [
    "AnnotationError",
    "InvalidSegmentError",
    "UnknownEntityError",
    "ValidationError",
    "ChatMessage",
    "Code",
    "Comment",
    "Document",
    "Quote",
    "Segment",
    "Theme",
    "CodedRun",
    "PlainRun",
    "resolve",
    "AnnotationStore",
]
