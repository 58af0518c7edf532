"""Scene (background and framing) configuration."""

from enum import Enum

from pydantic import BaseModel, Field

from ..errors import InputValidationError

CUSTOM_BACKGROUND = "custom-user-wish"
ORIGINAL_BACKGROUND = "original"


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    PORTRAIT = "3:4"
    LANDSCAPE = "4:3"
    STORY = "9:16"
    WIDESCREEN = "16:9"


class SceneConfig(BaseModel):
    """Background and aspect ratio applied to a try-on composition."""

    keep_background: bool = True
    background_prompt: str | None = Field(default=None, description="Environment description, or the custom sentinel")
    aspect_ratio: AspectRatio = AspectRatio.PORTRAIT

    @property
    def replaces_background(self) -> bool:
        """Whether the subject should be moved into a new environment."""
        return (
            not self.keep_background
            and bool(self.background_prompt)
            and self.background_prompt != ORIGINAL_BACKGROUND
        )

    def resolve_custom_background(self, custom_text: str | None) -> "SceneConfig":
        """Substitute the custom sentinel with a concrete environment description.

        Scenes that do not use the sentinel are returned unchanged.

        Raises:
            InputValidationError: if the sentinel is selected but no text was given.
        """
        if self.keep_background or self.background_prompt != CUSTOM_BACKGROUND:
            return self
        text = (custom_text or "").strip()
        if not text:
            raise InputValidationError("A custom background needs a description")
        return self.model_copy(update={
            "background_prompt": (
                f"Shot on location/studio. The environment is: {text}. "
                "The lighting and shadows must realistically match this environment."
            ),
        })

    def validate_for_submission(self) -> None:
        if not self.keep_background and self.background_prompt == CUSTOM_BACKGROUND:
            raise InputValidationError("Custom background was selected but never resolved")
