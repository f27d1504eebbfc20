"""Abstract base class for LLM providers.

This module defines the pluggable interface for chat-completion providers so
the collaborator layer can switch backends through configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

VALID_ROLES = ("system", "user", "assistant")


@dataclass
class Message:
    """A single chat message.

    ``images`` carries base64 payloads for multimodal models.
    """
    role: str
    content: str
    images: List[str] = field(default_factory=list)


@dataclass
class ChatResponse:
    """Normalized response from a provider."""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    raw_response: Optional[Dict[str, Any]] = None


class BaseLLM(ABC):
    """Abstract base class for LLM providers.

    All implementations must implement :meth:`chat`. :meth:`generate` is a
    single-prompt convenience built on top of it.
    """

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        trace: Optional[Any] = None,
        **kwargs: Any,
    ) -> ChatResponse:
        """Generate a chat completion.

        Args:
            messages: Conversation messages, oldest first. Must not be empty.
            trace: Optional trace context (unused by the built-in providers).
            **kwargs: Overrides such as ``temperature``, ``max_tokens`` or
                ``json_mode``.

        Returns:
            The provider's response.

        Raises:
            ValueError: If messages are invalid.
            RuntimeError: If the provider call fails.
        """

    def generate(self, prompt: str, system: Optional[str] = None, **kwargs: Any) -> str:
        """Send a single user prompt and return the reply text."""
        messages = []
        if system:
            messages.append(Message(role="system", content=system))
        messages.append(Message(role="user", content=prompt))
        return self.chat(messages, **kwargs).content

    def validate_messages(self, messages: List[Message]) -> None:
        """Validate a message list.

        Raises:
            ValueError: If the list is empty or a message is malformed.
        """
        if not messages:
            raise ValueError("Messages list cannot be empty")

        for i, message in enumerate(messages):
            if not isinstance(message, Message):
                raise ValueError(
                    f"Message at index {i} is not a Message (type: {type(message).__name__})"
                )
            if message.role not in VALID_ROLES:
                raise ValueError(
                    f"Message at index {i} has invalid role '{message.role}'. "
                    f"Expected one of: {', '.join(VALID_ROLES)}"
                )
            if not isinstance(message.content, str) or not message.content.strip():
                raise ValueError(f"Message at index {i} has empty content")
