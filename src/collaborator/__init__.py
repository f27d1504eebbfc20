"""
AI Collaborator.

This package contains the collaborator boundary used by the annotation core:
- BaseCollaborator interface and CollaboratorError
- LLMCollaborator, backed by a configured chat LLM
"""

from src.collaborator.base_collaborator import (
    NEW_CODE_PREFIX,
    BaseCollaborator,
    CollaboratorError,
    is_new_code,
)
from src.collaborator.llm_collaborator import LLMCollaborator

__all__ = [
    "NEW_CODE_PREFIX",
    "BaseCollaborator",
    "CollaboratorError",
    "LLMCollaborator",
    "is_new_code",
]
