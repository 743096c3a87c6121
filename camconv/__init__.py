"""Conversions of raw camera frame buffers to baseline JPEG, BMP and BGR888."""

__version__ = "0.1.0"
__all__ = ["pixels", "jpeg_tables", "jpeg_encoder", "to_jpg", "to_bmp"]