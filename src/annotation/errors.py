"""Exceptions raised by the annotation core."""

from __future__ import annotations


class AnnotationError(ValueError):
    """Base class for annotation core errors."""


class ValidationError(AnnotationError):
    """Raised when input is rejected at the boundary (empty title, empty comment, ...)."""


class InvalidSegmentError(AnnotationError):
    """Raised when a quote is requested without a usable segment."""


class UnknownEntityError(AnnotationError, KeyError):
    """Raised when an operation needs an entity id that is not in the store."""

    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Unknown {kind}: {entity_id!r}")

    def __str__(self) -> str:
        return str(self.args[0])
