"""Adapter for the OpenAI REST "responses" API with the image generation tool."""

import base64
import logging
from typing import Any

import httpx

from ..config import OpenAIConfig
from ..errors import NoImageProduced, ProviderError, TransientProviderError
from ..models import AspectRatio, ComposedPrompt, Credential, ImagePayload, NormalizedResult, Operation, Provider
from .base import ProviderAdapter
from .lifecycle import CancellationToken

logger = logging.getLogger(__name__)

IMAGE_SIZES = {
    AspectRatio.SQUARE: "1024x1024",
    AspectRatio.PORTRAIT: "1024x1536",
    AspectRatio.LANDSCAPE: "1536x1024",
    AspectRatio.STORY: "1024x1792",
    AspectRatio.WIDESCREEN: "1792x1024",
}
DEFAULT_IMAGE_SIZE = IMAGE_SIZES[AspectRatio.PORTRAIT]


def image_size_for(aspect_ratio: AspectRatio | None) -> str:
    """Pixel size requested from the image generation tool."""
    if aspect_ratio is None:
        return DEFAULT_IMAGE_SIZE
    return IMAGE_SIZES[aspect_ratio]


class OpenAIResponsesAdapter(ProviderAdapter):
    """Stateless HTTP adapter; images are inlined as data URLs."""

    provider = Provider.OPENAI

    def __init__(self, config: OpenAIConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport)
        return self._client

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/responses"

    def build_body(self, operation: Operation, prompt: ComposedPrompt) -> dict[str, Any]:
        content: list[dict[str, Any]] = [
            {"type": "input_image", "image_url": asset.to_data_url()}
            for asset in prompt.binary_assets
        ]
        content.append({"type": "input_text", "text": prompt.instruction_text})

        body: dict[str, Any] = {
            "model": self.config.image_model if operation.produces_image else self.config.analysis_model,
            "input": [{"role": "user", "content": content}],
        }
        if operation.produces_image:
            body["tools"] = [{"type": "image_generation", "size": image_size_for(prompt.aspect_ratio)}]
            body["tool_choice"] = {"type": "image_generation"}
        return body

    async def execute(
        self,
        operation: Operation,
        prompt: ComposedPrompt,
        credential: Credential,
        token: CancellationToken,
    ) -> NormalizedResult:
        body = self.build_body(operation, prompt)
        logger.debug("OpenAI %s request: model=%s, %d image(s)", operation.value, body["model"], len(prompt.binary_assets))

        try:
            response = await token.run(
                self.client.post(
                    self.endpoint,
                    json=body,
                    headers={"Authorization": f"Bearer {credential.secret}"},
                )
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("OpenAI returned a malformed response", status=response.status_code) from e

        if operation.produces_image:
            return NormalizedResult.from_image(self.extract_image(data))
        return NormalizedResult.from_text(self.extract_text(data))

    @staticmethod
    def _error_from_response(response: httpx.Response) -> ProviderError:
        code = None
        message = response.text[:500]
        try:
            error = response.json().get("error") or {}
        except (ValueError, AttributeError):
            error = {}
        if isinstance(error, dict):
            code = error.get("code")
            message = error.get("message") or message
        message = message or f"HTTP {response.status_code}"

        error_cls = TransientProviderError if response.status_code in (429, 503) else ProviderError
        return error_cls(message, status=response.status_code, code=code)

    def extract_image(self, data: dict[str, Any]) -> ImagePayload:
        """Return the first generated image in the response output."""
        for item in data.get("output") or []:
            if item.get("type") != "image_generation_call" or not item.get("result"):
                continue
            fmt = item.get("output_format") or "png"
            return ImagePayload(mime_type=f"image/{fmt}", data=base64.b64decode(item["result"]))
        raise NoImageProduced()

    def extract_text(self, data: dict[str, Any]) -> str:
        """Return the first non-empty output text, or an empty string."""
        output_text = data.get("output_text")
        if isinstance(output_text, str) and output_text.strip():
            return output_text
        for item in data.get("output") or []:
            if item.get("type") != "message":
                continue
            for content in item.get("content") or []:
                text = content.get("text")
                if content.get("type") == "output_text" and text and text.strip():
                    return text
        return ""

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
