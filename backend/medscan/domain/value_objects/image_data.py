"""
Image Data Value Object

Represents one photograph of a medicine passed to the vision analyzer.
"""

from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
import base64


@dataclass(frozen=True)
class ImageData:
    """
    Immutable value object representing image data.

    Can be constructed from a file path, raw bytes, or a base64 string
    (plain or ``data:image/...;base64,`` URL).

    Attributes:
        source: Original source identifier (file path or upload name)
        format: Image format (e.g., "jpeg", "png")
        label: Human label for multi-image submissions ("Front", "Back", ...)
        _bytes: Raw image bytes (internal)
        _base64: Base64 encoded image (internal)
    """

    source: Optional[str] = None
    format: Optional[str] = None
    label: Optional[str] = None
    _bytes: Optional[bytes] = field(default=None, repr=False)
    _base64: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        """Validate that at least one data source is provided."""
        if self._bytes is None and self._base64 is None and self.source is None:
            raise ValueError("ImageData must have at least one of: bytes, base64, or source path")

    @property
    def bytes(self) -> bytes:
        """
        Get raw image bytes, loading from source if necessary.

        Raises:
            ValueError: If no data source is available
        """
        if self._bytes is not None:
            return self._bytes

        if self._base64 is not None:
            return base64.b64decode(self._base64)

        if self.source is not None:
            path = Path(self.source)
            if path.exists():
                return path.read_bytes()

        raise ValueError("Cannot load image bytes: no valid source available")

    @property
    def base64_string(self) -> str:
        """Get base64 encoded image string."""
        if self._base64 is not None:
            return self._base64

        return base64.b64encode(self.bytes).decode("utf-8")

    @property
    def mime_type(self) -> str:
        """MIME type sent to the model; JPEG when the format is unknown."""
        fmt = (self.format or "jpeg").lower()
        if fmt == "jpg":
            fmt = "jpeg"
        return f"image/{fmt}"

    @property
    def data_url(self) -> str:
        """Image as a ``data:`` URL, the form chat-completion APIs accept."""
        return f"data:{self.mime_type};base64,{self.base64_string}"

    def with_label(self, label: str) -> "ImageData":
        """Return a copy carrying a multi-image label."""
        return ImageData(
            source=self.source,
            format=self.format,
            label=label,
            _bytes=self._bytes,
            _base64=self._base64,
        )

    def __str__(self) -> str:
        format_str = self.format or "unknown format"
        label_str = f", {self.label}" if self.label else ""
        return f"ImageData({format_str}{label_str})"

    @classmethod
    def from_base64(
        cls,
        base64_string: str,
        format: Optional[str] = None,
        source: Optional[str] = None
    ) -> "ImageData":
        """
        Create ImageData from base64 encoded string.

        Args:
            base64_string: Base64 encoded image data, optionally as a data URL
            format: Image format (e.g., "jpeg", "png")
            source: Optional source identifier

        Returns:
            ImageData instance
        """
        # Handle data URL format
        if base64_string.startswith("data:"):
            header, _, base64_data = base64_string.partition(",")
            if "image/" in header:
                format = header.split("image/")[1].split(";")[0]
            base64_string = base64_data

        return cls(
            source=source,
            format=format,
            _base64=base64_string.strip()
        )
