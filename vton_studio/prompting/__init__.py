"""Prompt construction and analysis post-processing."""

from .composer import (
    LANGUAGE_NAMES,
    VALIDATION_PROMPT,
    build_analysis_prompt,
    build_edit_prompt,
    build_extraction_prompt,
    build_recolor_instruction,
    build_tryon_prompt,
    compose,
    resolve_extract_target,
)
from .recommendations import parse_recommendations

__all__ = [
    "LANGUAGE_NAMES",
    "VALIDATION_PROMPT",
    "build_analysis_prompt",
    "build_edit_prompt",
    "build_extraction_prompt",
    "build_recolor_instruction",
    "build_tryon_prompt",
    "compose",
    "resolve_extract_target",
    "parse_recommendations",
]
