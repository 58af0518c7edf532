"""Operation results and the history entries derived from them."""

import time
import uuid
from enum import Enum

from pydantic import BaseModel, Field

from .garment import GarmentItem
from .image import ImagePayload
from .request import Operation
from .scene import SceneConfig


class HistoryType(str, Enum):
    EXTRACTED = "extracted"
    GENERATED = "generated"
    EDITED = "edited"


_HISTORY_TYPES = {
    Operation.EXTRACT: HistoryType.EXTRACTED,
    Operation.EDIT: HistoryType.EDITED,
    Operation.COMPOSE: HistoryType.GENERATED,
}


class HistoryItem(BaseModel):
    """A past result as the history collaborator stores it."""

    id: str
    result_image: str  # data URL
    config: SceneConfig | None = None
    items: list[GarmentItem] = Field(default_factory=list)
    timestamp: int  # milliseconds since the epoch
    type: HistoryType


class AnalysisReport(BaseModel):
    """Outfit critique plus the recommendations parsed out of it (may be empty)."""

    text: str
    recommendations: list[str] = Field(default_factory=list)


class StudioResult(BaseModel):
    """Result of an image-producing operation."""

    operation: Operation
    image: ImagePayload
    scene: SceneConfig | None = None
    garments: list[GarmentItem] = Field(default_factory=list)

    def to_history_item(self) -> HistoryItem:
        """Build the entry a history collaborator can append."""
        return HistoryItem(
            id=uuid.uuid4().hex,
            result_image=self.image.to_data_url(),
            config=self.scene,
            items=list(self.garments),
            timestamp=int(time.time() * 1000),
            type=_HISTORY_TYPES[self.operation],
        )
