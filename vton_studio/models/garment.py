"""Garment item models."""

import uuid
from enum import Enum

from pydantic import BaseModel, Field

from ..errors import InputValidationError
from .image import ImagePayload

FULL_BODY = "Full-body"
OTHER = "Other"

CLOTHING_CATEGORIES = [
    FULL_BODY,
    "Blouse/Shirt",
    "Trousers/Pants",
    "Skirt",
    "Dress",
    "Jacket/Blazer",
    "Coat",
    "Sweater/Knitwear",
    "Footwear",
    "Handbag/Clutch",
    "Jewelry",
    "Hat",
    "Scarf",
    "Belt",
    "Glasses",
    "Gloves",
    OTHER,
]


class GarmentKind(str, Enum):
    IMAGE = "image"
    TEXT = "text"


class GarmentItem(BaseModel):
    """A single clothing or accessory item, backed by an image or a description."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    kind: GarmentKind = GarmentKind.IMAGE
    image_data: ImagePayload | None = None
    category: str = Field(default="Blouse/Shirt", description="One of CLOTHING_CATEGORIES")
    custom_description: str | None = None

    @property
    def description(self) -> str:
        """The stripped custom description, empty when none was given."""
        return (self.custom_description or "").strip()

    @property
    def has_image(self) -> bool:
        return self.kind == GarmentKind.IMAGE and self.image_data is not None

    @property
    def label(self) -> str:
        """How the item is named in prompts: its description for 'Other', else its category."""
        if self.category == OTHER and self.description:
            return self.description
        return self.category

    def validate_for_submission(self) -> None:
        """Check the item is complete enough to send to a provider.

        Raises:
            InputValidationError: when the category is unknown or a required
                description or image is missing.
        """
        if self.category not in CLOTHING_CATEGORIES:
            raise InputValidationError(f"Garment {self.id} has unknown category '{self.category}'")
        if self.kind == GarmentKind.TEXT and not self.description:
            raise InputValidationError(f"Text garment {self.id} needs a description")
        if self.category == OTHER and not self.description:
            raise InputValidationError(f"Garment {self.id} in category 'Other' needs a description")
        if self.kind == GarmentKind.IMAGE and self.image_data is None:
            raise InputValidationError(f"Image garment {self.id} has no image")
