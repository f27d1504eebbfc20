"""
LLM Module.

This package contains chat-completion abstractions and implementations:
- Base LLM class and message types
- LLM factory
- Provider implementations (Ollama)
"""

from src.libs.llm.base_llm import BaseLLM, ChatResponse, Message
from src.libs.llm.llm_factory import LLMFactory
from src.libs.llm.ollama_llm import OllamaLLM, OllamaLLMError

__all__ = [
    "BaseLLM",
    "ChatResponse",
    "Message",
    "LLMFactory",
    "OllamaLLM",
    "OllamaLLMError",
]
