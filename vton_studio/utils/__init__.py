"""Utility helpers."""

from .images import decode_data_url, detect_mime_type, encode_data_url

__all__ = ["decode_data_url", "detect_mime_type", "encode_data_url"]
