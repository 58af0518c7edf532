"""Adapter for the Gemini multi-modal generate-content API."""

import base64
import logging
from typing import Any, Callable

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import GeminiConfig
from ..errors import NoImageProduced, ProviderError, TransientProviderError
from ..models import ComposedPrompt, Credential, ImagePayload, NormalizedResult, Operation, Provider
from .base import ProviderAdapter
from .lifecycle import CancellationToken
from .retry import is_transient_error

logger = logging.getLogger(__name__)


def _default_client_factory(api_key: str) -> genai.Client:
    return genai.Client(api_key=api_key)


class GeminiAdapter(ProviderAdapter):
    """Sends binary parts followed by one text part in a single user message."""

    provider = Provider.GEMINI

    def __init__(
        self,
        config: GeminiConfig,
        client_factory: Callable[[str], Any] | None = None,
    ):
        self.config = config
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._client_key: str | None = None

    def _get_client(self, api_key: str) -> Any:
        """Get or create the SDK client for this key."""
        if self._client is None or self._client_key != api_key:
            self._client = self._client_factory(api_key)
            self._client_key = api_key
        return self._client

    def model_for(self, operation: Operation) -> str:
        return self.config.image_model if operation.produces_image else self.config.analysis_model

    def build_contents(self, prompt: ComposedPrompt) -> list[types.Content]:
        parts = [
            types.Part.from_bytes(data=asset.data, mime_type=asset.mime_type)
            for asset in prompt.binary_assets
        ]
        parts.append(types.Part.from_text(text=prompt.instruction_text))
        return [types.Content(role="user", parts=parts)]

    def build_config(self, operation: Operation, prompt: ComposedPrompt) -> types.GenerateContentConfig | None:
        if not operation.produces_image:
            return None
        image_config = None
        if prompt.aspect_ratio is not None:
            image_config = types.ImageConfig(aspect_ratio=prompt.aspect_ratio.value)
        return types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=image_config,
        )

    async def execute(
        self,
        operation: Operation,
        prompt: ComposedPrompt,
        credential: Credential,
        token: CancellationToken,
    ) -> NormalizedResult:
        client = self._get_client(credential.secret)
        model = self.model_for(operation)
        logger.debug("Gemini %s request: model=%s, %d image part(s)", operation.value, model, len(prompt.binary_assets))

        try:
            response = await token.run(
                client.aio.models.generate_content(
                    model=model,
                    contents=self.build_contents(prompt),
                    config=self.build_config(operation, prompt),
                )
            )
        except genai_errors.APIError as e:
            error_cls = TransientProviderError if is_transient_error(e) else ProviderError
            raise error_cls(e.message or str(e), status=e.status, code=e.code) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        if operation.produces_image:
            return NormalizedResult.from_image(self.extract_image(response))
        return NormalizedResult.from_text(self.extract_text(response))

    @staticmethod
    def _parts(response: Any):
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                yield part

    def extract_image(self, response: Any) -> ImagePayload:
        """Return the first inline image in the response."""
        for part in self._parts(response):
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline is not None else None
            if not data:
                continue
            if isinstance(data, str):
                data = base64.b64decode(data)
            return ImagePayload(mime_type=inline.mime_type or "image/png", data=data)
        raise NoImageProduced()

    def extract_text(self, response: Any) -> str:
        """Join the text parts of the first candidate, skipping thought summaries."""
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return ""
        content = getattr(candidates[0], "content", None)
        texts = [
            part.text
            for part in getattr(content, "parts", None) or []
            if getattr(part, "text", None) and not getattr(part, "thought", False)
        ]
        return "".join(texts)

    async def close(self) -> None:
        self._client = None
        self._client_key = None
