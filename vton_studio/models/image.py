"""Self-describing image payloads."""

from pydantic import BaseModel, ConfigDict, Field

from ..utils.images import decode_data_url, detect_mime_type, encode_data_url


class ImagePayload(BaseModel):
    """Image bytes together with their mime type."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    mime_type: str = Field(default="image/png", description="e.g., 'image/png', 'image/jpeg'")
    data: bytes

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str | None = None) -> "ImagePayload":
        """Wrap raw bytes, sniffing the mime type when not given."""
        return cls(mime_type=mime_type or detect_mime_type(data), data=data)

    @classmethod
    def from_data_url(cls, value: str) -> "ImagePayload":
        """Parse a base64 data URL or a bare base64 string."""
        mime_type, data = decode_data_url(value)
        return cls.from_bytes(data, mime_type)

    def to_data_url(self) -> str:
        return encode_data_url(self.data, self.mime_type)

    def __repr__(self) -> str:
        return f"ImagePayload(mime_type={self.mime_type!r}, size={len(self.data)})"
