"""FastAPI server for the try-on studio.

Receives requests from the studio front end with:
- person_image: Base64 data URL of the user's photo
- operation-specific inputs (language, category, instruction, garments, scene)
- optionally provider/api_key, when the user (re)connects a credential
"""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from vton_studio import __version__
from vton_studio.config import load_config
from vton_studio.errors import (
    AuthenticationError,
    InputValidationError,
    NoImageProduced,
    ProviderError,
    RequestCancelled,
)
from vton_studio.models import (
    FULL_BODY,
    AnalysisReport,
    Credential,
    GarmentItem,
    GarmentKind,
    HistoryItem,
    ImagePayload,
    Language,
    Provider,
    SceneConfig,
    StudioResult,
)
from vton_studio.pipeline import TryOnStudio

logger = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    "analyze": "Analysis failed",
    "extract": "Extraction failed",
    "edit": "Edit failed",
    "recolor": "Edit failed",
    "tryon": "Try-on generation failed",
}


# Initialize studio (will be done on first request)
_studio: TryOnStudio | None = None


def get_studio() -> TryOnStudio:
    """Get or create the studio instance."""
    global _studio
    if _studio is None:
        config = load_config()  # Loads from .env automatically via pydantic-settings
        logging.basicConfig(level=config.log_level.upper())
        _studio = TryOnStudio(config)
    return _studio


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _studio is not None:
        await _studio.close()


app = FastAPI(
    title="VTON Studio API",
    description="Virtual try-on studio backed by generative image providers",
    version=__version__,
    lifespan=lifespan,
)

# Enable CORS for the browser front end
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class StudioRequest(BaseModel):
    """Fields shared by every operation request."""
    person_image: str  # Base64 data URL
    provider: Provider | None = None
    api_key: str | None = None  # Supplying a key (re)authenticates the provider

    def credential(self) -> Credential | None:
        if not self.api_key or not self.api_key.strip():
            return None
        provider = self.provider or get_studio().config.provider
        return Credential(provider=provider, secret=self.api_key)


class AnalyzeRequest(StudioRequest):
    language: Language = Language.ZH


class ExtractRequest(StudioRequest):
    category: str = FULL_BODY
    custom_description: str | None = None


class EditRequest(StudioRequest):
    instruction: str


class RecolorRequest(StudioRequest):
    target: str
    color: str


class GarmentPayload(BaseModel):
    """One garment as sent by the front end."""
    id: str | None = None
    kind: GarmentKind = GarmentKind.IMAGE
    image: str | None = None  # Base64 data URL, for image garments
    category: str
    custom_description: str | None = None

    def to_item(self) -> GarmentItem:
        image_data = None
        if self.image:
            try:
                image_data = ImagePayload.from_data_url(self.image)
            except ValueError as e:
                raise InputValidationError(f"Could not decode garment image: {e}") from e
        fields = {
            "kind": self.kind,
            "image_data": image_data,
            "category": self.category,
            "custom_description": self.custom_description,
        }
        if self.id:
            fields["id"] = self.id
        return GarmentItem(**fields)


class TryOnRequest(StudioRequest):
    garments: list[GarmentPayload] = Field(default_factory=list)
    scene: SceneConfig = Field(default_factory=SceneConfig)
    custom_background: str | None = None


class CredentialRequest(BaseModel):
    api_key: str


class StudioResponse(BaseModel):
    """Response for every operation."""
    success: bool
    image: str | None = None  # Base64 data URL
    text: str | None = None
    recommendations: list[str] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None
    reauth_required: bool = False
    cancelled: bool = False
    history_item: HistoryItem | None = None


def _success(result: StudioResult | AnalysisReport) -> StudioResponse:
    if isinstance(result, AnalysisReport):
        return StudioResponse(success=True, text=result.text, recommendations=result.recommendations)
    return StudioResponse(
        success=True,
        image=result.image.to_data_url(),
        history_item=result.to_history_item(),
    )


async def _run(name: str, call: Callable[[], Awaitable[StudioResult | AnalysisReport]]) -> StudioResponse:
    """Run an operation and map its outcome onto a StudioResponse."""
    failure = FAILURE_MESSAGES[name]
    try:
        return _success(await call())
    except RequestCancelled:
        # Superseded by a newer request: not an error for the user
        return StudioResponse(success=False, cancelled=True)
    except InputValidationError as e:
        return StudioResponse(success=False, error=str(e), error_kind="validation")
    except AuthenticationError as e:
        return StudioResponse(success=False, error=e.message, error_kind="auth", reauth_required=e.reauth_required)
    except NoImageProduced as e:
        logger.warning("%s: %s", failure, e)
        return StudioResponse(success=False, error=f"{failure}: {e}", error_kind="no_image")
    except ProviderError as e:
        logger.warning("%s: %r", failure, e)
        return StudioResponse(success=False, error=f"{failure}: {e}", error_kind="provider")
    except Exception as e:
        logger.exception(failure)
        return StudioResponse(success=False, error=f"{failure}: {e}", error_kind="internal")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "VTON Studio API", "version": __version__}


@app.get("/health")
async def health():
    """Which providers currently hold a usable credential."""
    studio = get_studio()
    providers = {provider.value: studio.is_ready(provider) for provider in Provider}
    return {
        "status": "ok" if studio.is_ready(studio.config.provider) else "degraded",
        "default_provider": studio.config.provider.value,
        "providers": providers,
    }


@app.put("/api/credentials/{provider}")
async def connect_credential(provider: Provider, request: CredentialRequest):
    """Validate and store an API key for ``provider``."""
    studio = get_studio()
    try:
        accepted = await studio.connect(Credential(provider=provider, secret=request.api_key))
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    if not accepted:
        raise HTTPException(status_code=401, detail="API key was rejected")
    return {"provider": provider.value, "ready": True}


@app.delete("/api/credentials/{provider}")
async def disconnect_credential(provider: Provider):
    get_studio().disconnect(provider)
    return {"provider": provider.value, "ready": False}


@app.post("/api/analyze", response_model=StudioResponse)
async def analyze(request: AnalyzeRequest):
    """Critique the outfit and suggest items."""
    studio = get_studio()
    return await _run("analyze", lambda: studio.analyze(
        request.person_image,
        request.language,
        credential=request.credential(),
        provider=request.provider,
    ))


@app.post("/api/extract", response_model=StudioResponse)
async def extract(request: ExtractRequest):
    """Extract a garment (or the whole outfit) onto a white background."""
    studio = get_studio()
    return await _run("extract", lambda: studio.extract_category(
        request.person_image,
        request.category,
        request.custom_description,
        credential=request.credential(),
        provider=request.provider,
    ))


@app.post("/api/edit", response_model=StudioResponse)
async def edit(request: EditRequest):
    """Apply a free-text edit to the photo."""
    studio = get_studio()
    return await _run("edit", lambda: studio.edit(
        request.person_image,
        request.instruction,
        credential=request.credential(),
        provider=request.provider,
    ))


@app.post("/api/recolor", response_model=StudioResponse)
async def recolor(request: RecolorRequest):
    """Change the color of one item in the photo."""
    studio = get_studio()
    return await _run("recolor", lambda: studio.recolor(
        request.person_image,
        request.target,
        request.color,
        credential=request.credential(),
        provider=request.provider,
    ))


@app.post("/api/tryon", response_model=StudioResponse)
async def generate_tryon(request: TryOnRequest):
    """Generate a virtual try-on image from every garment."""
    studio = get_studio()

    async def call() -> StudioResult:
        garments = [garment.to_item() for garment in request.garments]
        return await studio.compose(
            request.person_image,
            garments,
            request.scene,
            custom_background=request.custom_background,
            credential=request.credential(),
            provider=request.provider,
        )

    return await _run("tryon", call)


@app.post("/api/cancel")
async def cancel():
    """Cancel the in-flight request, if any."""
    return {"cancelled": get_studio().cancel_active()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
