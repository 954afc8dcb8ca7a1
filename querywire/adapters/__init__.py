from .base import CompletionAdapter
from .gemini import GeminiAdapter
from .openai_chat import OpenAIChatAdapter

__all__ = ["CompletionAdapter", "GeminiAdapter", "OpenAIChatAdapter"]
