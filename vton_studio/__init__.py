"""Virtual try-on studio: prompt composition and provider orchestration."""

from .config import StudioConfig, load_config
from .pipeline import TryOnStudio

__version__ = "1.0.0"

__all__ = ["StudioConfig", "load_config", "TryOnStudio", "__version__"]
