"""Studio orchestration."""

from .studio import ANALYSIS_FALLBACK, TryOnStudio

__all__ = ["ANALYSIS_FALLBACK", "TryOnStudio"]
