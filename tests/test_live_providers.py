"""Smoke tests against the real providers.

Skipped unless the matching API key is configured (VTON_GEMINI_API_KEY /
VTON_OPENAI_API_KEY in the environment or .env).
"""

import pytest

from vton_studio import TryOnStudio, load_config
from vton_studio.models import Credential, Provider


def _key_for(provider: Provider) -> str:
    return load_config().initial_credentials().get(provider, "")


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("provider", list(Provider))
async def test_configured_key_validates(provider):
    key = _key_for(provider)
    if not key:
        pytest.skip(f"No {provider.value} API key configured")

    studio = TryOnStudio(load_config())
    try:
        assert await studio.validate_credential(Credential(provider=provider, secret=key))
    finally:
        await studio.close()


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("provider", list(Provider))
async def test_bogus_key_rejected(provider):
    if not _key_for(provider):
        pytest.skip(f"No {provider.value} API key configured")

    studio = TryOnStudio(load_config())
    try:
        assert not await studio.validate_credential(Credential(provider=provider, secret="not-a-real-key"))
    finally:
        await studio.close()
