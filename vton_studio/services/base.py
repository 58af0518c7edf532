"""Provider adapter interface."""

from abc import ABC, abstractmethod

from ..models import ComposedPrompt, Credential, NormalizedResult, Operation, Provider
from .lifecycle import CancellationToken


class ProviderAdapter(ABC):
    """Translates a composed prompt into one provider call and normalizes the answer.

    Implementations raise ``ProviderError`` (or a subclass) on any transport or
    application failure, ``NoImageProduced`` when an image operation returns no
    image, and honour the token by aborting the in-flight call.
    """

    provider: Provider

    @abstractmethod
    async def execute(
        self,
        operation: Operation,
        prompt: ComposedPrompt,
        credential: Credential,
        token: CancellationToken,
    ) -> NormalizedResult:
        ...

    async def close(self) -> None:
        """Release network resources."""
