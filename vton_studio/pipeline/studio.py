"""Try-on studio orchestrator.

Flow for every operation:
1. Validate inputs locally (no network)
2. Resolve the credential for the provider
3. Supersede any in-flight request and take a new cancellation token
4. Compose the prompt and run it through the provider adapter, with retries
5. Normalize the result, or classify the failure
"""

import asyncio
import logging

from ..config import StudioConfig
from ..errors import AuthenticationError, InputValidationError, ProviderError, RequestCancelled
from ..models import (
    CLOTHING_CATEGORIES,
    AnalysisReport,
    ComposedPrompt,
    Credential,
    GarmentItem,
    ImagePayload,
    Language,
    NormalizedResult,
    Operation,
    OrchestratedRequest,
    Provider,
    SceneConfig,
    StudioResult,
)
from ..prompting import VALIDATION_PROMPT, build_recolor_instruction, compose, parse_recommendations, resolve_extract_target
from ..services import (
    AuthStateTracker,
    CancellationToken,
    CredentialStore,
    InMemoryCredentialStore,
    ProviderAdapter,
    RequestLifecycleManager,
    build_adapter,
    with_retry,
)

logger = logging.getLogger(__name__)

ANALYSIS_FALLBACK = "Unable to generate analysis right now. Please try again."
AUTH_FAILURE_MESSAGE = "API key is invalid or expired. Please reconnect."
REJECTED_KEY_MESSAGE = "The supplied API key was rejected. The saved key is unchanged."

ImageInput = ImagePayload | bytes | str | None


def _coerce_image(image: ImageInput, what: str = "person image") -> ImagePayload:
    """Accept a payload, raw bytes, or a base64 data URL."""
    if isinstance(image, ImagePayload):
        if not image.data:
            raise InputValidationError(f"The {what} is empty")
        return image
    if not image:
        raise InputValidationError(f"Please upload a {what} first")
    if isinstance(image, bytes):
        return ImagePayload.from_bytes(image)
    try:
        payload = ImagePayload.from_data_url(image)
    except ValueError as e:
        raise InputValidationError(f"Could not decode the {what}: {e}") from e
    if not payload.data:
        raise InputValidationError(f"The {what} is empty")
    return payload


class TryOnStudio:
    """Orchestrates analyze / extract / edit / compose against one provider at a time.

    At most one request is in flight: starting a new one cancels the
    previous, which then raises ``RequestCancelled`` instead of returning.
    """

    def __init__(
        self,
        config: StudioConfig,
        credential_store: CredentialStore | None = None,
        adapters: dict[Provider, ProviderAdapter] | None = None,
    ):
        self.config = config
        if credential_store is None:
            credential_store = InMemoryCredentialStore(config.initial_credentials())
        self.credentials = credential_store
        self.auth = AuthStateTracker(self.credentials, strict=config.auth.strict_status_match)
        self.lifecycle = RequestLifecycleManager()
        self._adapters: dict[Provider, ProviderAdapter] = dict(adapters or {})

    def adapter_for(self, provider: Provider) -> ProviderAdapter:
        """Get or create the adapter for ``provider``."""
        if provider not in self._adapters:
            self._adapters[provider] = build_adapter(provider, self.config)
        return self._adapters[provider]

    # --- Operations ---

    async def analyze(
        self,
        person_image: ImageInput,
        language: Language | str = Language.ZH,
        *,
        credential: Credential | None = None,
        provider: Provider | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AnalysisReport:
        """Critique the outfit in ``person_image`` in the requested language."""
        person = _coerce_image(person_image)
        try:
            language = Language(language)
        except ValueError as e:
            raise InputValidationError(f"Unsupported language: {language}") from e

        request = OrchestratedRequest(Operation.ANALYZE, person, language=language)
        result = await self._execute(request, credential, provider, cancel_token)

        text = (result.text or "").strip() or ANALYSIS_FALLBACK
        return AnalysisReport(text=text, recommendations=parse_recommendations(text))

    async def extract(
        self,
        person_image: ImageInput,
        target_description: str,
        *,
        credential: Credential | None = None,
        provider: Provider | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> StudioResult:
        """Cut the described item(s) out onto a white background."""
        person = _coerce_image(person_image)
        if not (target_description or "").strip():
            raise InputValidationError("Describe what to extract")

        request = OrchestratedRequest(Operation.EXTRACT, person, directive=target_description.strip())
        result = await self._execute(request, credential, provider, cancel_token)
        return StudioResult(operation=Operation.EXTRACT, image=result.image)

    async def extract_category(
        self,
        person_image: ImageInput,
        category: str,
        custom_description: str | None = None,
        **kwargs,
    ) -> StudioResult:
        """Extract by clothing category ('Full-body' and 'Other' are resolved to phrases)."""
        if category not in CLOTHING_CATEGORIES:
            raise InputValidationError(f"Unknown clothing category: {category}")
        return await self.extract(person_image, resolve_extract_target(category, custom_description), **kwargs)

    async def edit(
        self,
        person_image: ImageInput,
        instruction: str,
        *,
        credential: Credential | None = None,
        provider: Provider | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> StudioResult:
        """Apply a free-text edit while keeping the person's identity."""
        person = _coerce_image(person_image)
        if not (instruction or "").strip():
            raise InputValidationError("Describe the edit to make")

        request = OrchestratedRequest(Operation.EDIT, person, directive=instruction.strip())
        result = await self._execute(request, credential, provider, cancel_token)
        return StudioResult(operation=Operation.EDIT, image=result.image)

    async def recolor(
        self,
        person_image: ImageInput,
        target: str,
        color: str,
        **kwargs,
    ) -> StudioResult:
        """Change only the hue of ``target`` to ``color``."""
        if not (target or "").strip() or not (color or "").strip():
            raise InputValidationError("Recolor needs both an item and a color")
        return await self.edit(person_image, build_recolor_instruction(target, color), **kwargs)

    async def compose(
        self,
        person_image: ImageInput,
        garments: list[GarmentItem],
        scene: SceneConfig | None = None,
        *,
        custom_background: str | None = None,
        credential: Credential | None = None,
        provider: Provider | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> StudioResult:
        """Dress the person in every garment, in order, within the given scene."""
        person = _coerce_image(person_image)
        if not garments:
            raise InputValidationError("Add at least one garment")
        for item in garments:
            item.validate_for_submission()

        scene = (scene or SceneConfig()).resolve_custom_background(custom_background)
        scene.validate_for_submission()

        # Snapshot: later edits by the caller must not leak into this request
        snapshot = tuple(item.model_copy(deep=True) for item in garments)

        request = OrchestratedRequest(Operation.COMPOSE, person, garments=snapshot, scene=scene)
        result = await self._execute(request, credential, provider, cancel_token)
        return StudioResult(
            operation=Operation.COMPOSE,
            image=result.image,
            scene=scene,
            garments=list(snapshot),
        )

    # --- Credentials ---

    async def validate_credential(self, credential: Credential, timeout: float | None = None) -> bool:
        """Probe the provider with a trivial request.

        Returns False when the credential is rejected. Other failures,
        including a timeout, propagate.
        """
        if not credential.secret.strip():
            return False
        timeout = self.config.auth.validation_timeout if timeout is None else timeout
        adapter = self.adapter_for(credential.provider)
        probe = ComposedPrompt(VALIDATION_PROMPT)

        try:
            await asyncio.wait_for(
                adapter.execute(Operation.ANALYZE, probe, credential, CancellationToken()),
                timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError("Validation timeout. Please try again.") from e
        except Exception as e:
            if self.auth.classify(e):
                return False
            raise
        return True

    async def connect(self, credential: Credential) -> bool:
        """Validate and store a credential. Returns whether it was accepted."""
        if not await self.validate_credential(credential):
            logger.warning("Rejected %s credential", credential.provider.value)
            return False
        self.auth.provide(credential.provider, credential.secret)
        logger.info("Connected %s credential", credential.provider.value)
        return True

    def disconnect(self, provider: Provider) -> None:
        self.auth.forget(provider)

    def is_ready(self, provider: Provider) -> bool:
        return self.auth.is_ready(provider)

    # --- Lifecycle ---

    def cancel_active(self) -> bool:
        return self.lifecycle.cancel_active()

    async def close(self) -> None:
        """Cancel any in-flight request and release adapter resources."""
        self.lifecycle.shutdown()
        for adapter in self._adapters.values():
            await adapter.close()

    # --- Internals ---

    async def _execute(
        self,
        request: OrchestratedRequest,
        credential: Credential | None,
        provider: Provider | None,
        cancel_token: CancellationToken | None,
    ) -> NormalizedResult:
        operation = request.operation
        if provider is None:
            provider = credential.provider if credential is not None else self.config.provider
        provider = Provider(provider)

        resolved = self.auth.resolve(provider, credential)
        prompt = compose(request)
        adapter = self.adapter_for(provider)
        retry = self.config.retry

        token = self.lifecycle.begin(parent=cancel_token)
        logger.info("Starting %s via %s", operation.value, provider.value)

        try:
            result = await with_retry(
                lambda: adapter.execute(operation, prompt, resolved, token),
                max_retries=retry.max_retries,
                base_delay_ms=retry.base_delay_ms,
                token=token,
                jitter_ms=retry.jitter_ms,
            )
            # A superseded request never hands back its result
            token.raise_if_cancelled()
            if credential is not None and credential.secret.strip():
                self.auth.provide(provider, resolved.secret)
            return result
        except RequestCancelled:
            logger.info("%s request cancelled", operation.value)
            raise
        except Exception as e:
            if self.auth.classify(e):
                if self.auth.reject(resolved):
                    raise AuthenticationError(provider, AUTH_FAILURE_MESSAGE) from e
                raise AuthenticationError(provider, REJECTED_KEY_MESSAGE, reauth_required=False) from e
            logger.error("%s failed: %r", operation.value, e)
            raise
        finally:
            self.lifecycle.end(token)
