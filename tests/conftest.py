# Test fixtures and configuration
import asyncio
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from vton_studio.config import StudioConfig, RetryConfig  # noqa: E402
from vton_studio.errors import NoImageProduced  # noqa: E402
from vton_studio.models import (  # noqa: E402
    GarmentItem,
    GarmentKind,
    ImagePayload,
    NormalizedResult,
    Provider,
)
from vton_studio.services import InMemoryCredentialStore, ProviderAdapter  # noqa: E402

MINIMAL_PNG = bytes([
    0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
    0x00, 0x00, 0x00, 0x0D, 0x49, 0x48, 0x44, 0x52,  # IHDR chunk
    0x00, 0x00, 0x00, 0x01, 0x00, 0x00, 0x00, 0x01,  # 1x1 dimensions
    0x08, 0x02, 0x00, 0x00, 0x00, 0x90, 0x77, 0x53,
    0xDE, 0x00, 0x00, 0x00, 0x0C, 0x49, 0x44, 0x41,  # IDAT chunk
    0x54, 0x08, 0xD7, 0x63, 0xF8, 0xCF, 0xC0, 0x00,
    0x00, 0x00, 0x03, 0x00, 0x01, 0x00, 0x05, 0xFE,
    0xD4, 0xAA, 0x00, 0x00, 0x00, 0x00, 0x49, 0x45,  # IEND chunk
    0x4E, 0x44, 0xAE, 0x42, 0x60, 0x82
])

MINIMAL_JPEG = b'\xff\xd8\xff\xe0\x00\x10JFIF\x00' + b'\x00' * 32


class FakeAdapter(ProviderAdapter):
    """Adapter double: replays scripted outcomes and records every call.

    Each entry of ``outcomes`` is a NormalizedResult to return or an
    exception to raise. When ``gate`` is set, calls wait on it (through the
    token, so cancellation still aborts them).
    """

    def __init__(self, outcomes=None, provider=Provider.GEMINI, gate: asyncio.Event | None = None):
        self.provider = provider
        self.outcomes = list(outcomes or [])
        self.gate = gate
        self.calls = []
        self.closed = False

    async def execute(self, operation, prompt, credential, token):
        self.calls.append((operation, prompt, credential))
        if self.gate is not None:
            await token.run(self.gate.wait())
        if not self.outcomes:
            if operation.produces_image:
                return NormalizedResult.from_image(ImagePayload(mime_type="image/png", data=MINIMAL_PNG))
            return NormalizedResult.from_text("Looks great.")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self):
        self.closed = True


@pytest.fixture
def minimal_png_bytes():
    """Minimal valid PNG image bytes."""
    return MINIMAL_PNG


@pytest.fixture
def person_image():
    return ImagePayload(mime_type="image/jpeg", data=MINIMAL_JPEG)


@pytest.fixture
def png_data_url():
    return ImagePayload(mime_type="image/png", data=MINIMAL_PNG).to_data_url()


@pytest.fixture
def dress_item():
    return GarmentItem(
        id="dress",
        kind=GarmentKind.IMAGE,
        image_data=ImagePayload(mime_type="image/png", data=MINIMAL_PNG),
        category="Dress",
    )


@pytest.fixture
def beret_item():
    return GarmentItem(id="beret", kind=GarmentKind.TEXT, category="Hat", custom_description="red beret")


@pytest.fixture
def studio_config():
    """Config with no backoff delay so retries are instant."""
    return StudioConfig(retry=RetryConfig(max_retries=3, base_delay_ms=0, jitter_ms=0))


@pytest.fixture
def credential_store():
    return InMemoryCredentialStore({Provider.GEMINI: "test-gemini-key"})


@pytest.fixture
def no_image_error():
    return NoImageProduced()
