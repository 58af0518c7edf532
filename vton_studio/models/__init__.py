"""Data models for the try-on studio."""

from .image import ImagePayload
from .garment import CLOTHING_CATEGORIES, FULL_BODY, OTHER, GarmentItem, GarmentKind
from .scene import CUSTOM_BACKGROUND, ORIGINAL_BACKGROUND, AspectRatio, SceneConfig
from .request import (
    ComposedPrompt,
    Credential,
    Language,
    NormalizedResult,
    Operation,
    OrchestratedRequest,
    Provider,
    ResultKind,
)
from .history import AnalysisReport, HistoryItem, HistoryType, StudioResult

__all__ = [
    "ImagePayload",
    "CLOTHING_CATEGORIES",
    "FULL_BODY",
    "OTHER",
    "GarmentItem",
    "GarmentKind",
    "CUSTOM_BACKGROUND",
    "ORIGINAL_BACKGROUND",
    "AspectRatio",
    "SceneConfig",
    "ComposedPrompt",
    "Credential",
    "Language",
    "NormalizedResult",
    "Operation",
    "OrchestratedRequest",
    "Provider",
    "ResultKind",
    "AnalysisReport",
    "HistoryItem",
    "HistoryType",
    "StudioResult",
]
