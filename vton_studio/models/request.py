"""Request and result models shared by the composer, adapters, and studio."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from .garment import GarmentItem
from .image import ImagePayload
from .scene import AspectRatio, SceneConfig


class Provider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"


class Operation(str, Enum):
    ANALYZE = "analyze"
    EXTRACT = "extract"
    EDIT = "edit"
    COMPOSE = "compose"

    @property
    def produces_image(self) -> bool:
        return self is not Operation.ANALYZE


class Language(str, Enum):
    ZH = "zh"
    EN = "en"
    JA = "ja"
    KO = "ko"


class Credential(BaseModel):
    provider: Provider
    secret: str

    def __repr__(self) -> str:
        return f"Credential(provider={self.provider.value!r}, secret='***')"


class ResultKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


class NormalizedResult(BaseModel):
    """Provider-agnostic result: either text or an image."""

    kind: ResultKind
    text: str | None = None
    image: ImagePayload | None = None

    @classmethod
    def from_text(cls, text: str) -> NormalizedResult:
        return cls(kind=ResultKind.TEXT, text=text)

    @classmethod
    def from_image(cls, image: ImagePayload) -> NormalizedResult:
        return cls(kind=ResultKind.IMAGE, image=image)

    @property
    def payload(self) -> str | ImagePayload | None:
        return self.image if self.kind == ResultKind.IMAGE else self.text


@dataclass(frozen=True)
class OrchestratedRequest:
    """One end-to-end invocation of an operation.

    ``directive`` is the extraction target for EXTRACT and the edit
    instruction for EDIT; other operations ignore it.
    """
    operation: Operation
    person_image: ImagePayload
    garments: tuple[GarmentItem, ...] = ()
    scene: SceneConfig = field(default_factory=SceneConfig)
    language: Language = Language.ZH
    directive: str | None = None


@dataclass(frozen=True)
class ComposedPrompt:
    """Instruction text plus the ordered binary assets that accompany it."""
    instruction_text: str
    binary_assets: tuple[ImagePayload, ...] = ()
    aspect_ratio: AspectRatio | None = None
