"""Provider adapters and the request-handling services around them."""

from ..config import StudioConfig
from ..models import Provider
from .auth import AuthStateTracker, CredentialStore, InMemoryCredentialStore, is_auth_error
from .base import ProviderAdapter
from .gemini_adapter import GeminiAdapter
from .lifecycle import CancellationToken, RequestLifecycleManager
from .openai_adapter import OpenAIResponsesAdapter, image_size_for
from .retry import is_transient_error, with_retry


def build_adapter(provider: Provider, config: StudioConfig) -> ProviderAdapter:
    """Create the adapter variant for ``provider``."""
    if provider == Provider.GEMINI:
        return GeminiAdapter(config.gemini)
    if provider == Provider.OPENAI:
        return OpenAIResponsesAdapter(config.openai)
    raise ValueError(f"Unknown provider: {provider}")


__all__ = [
    "AuthStateTracker",
    "CredentialStore",
    "InMemoryCredentialStore",
    "is_auth_error",
    "ProviderAdapter",
    "GeminiAdapter",
    "CancellationToken",
    "RequestLifecycleManager",
    "OpenAIResponsesAdapter",
    "image_size_for",
    "is_transient_error",
    "with_retry",
    "build_adapter",
]
