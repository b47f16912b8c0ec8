"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class Orientation(_EnumMixin):
    """Output sheet orientation."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


class NumberPosition(_EnumMixin):
    """Anchor for page number text."""

    TOP_LEFT = "top-left"
    TOP_CENTER = "top-center"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_CENTER = "bottom-center"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def is_top(self) -> bool:
        """Return whether the anchor sits at the top edge."""
        return self.value.startswith("top")

    @property
    def horizontal(self) -> str:
        """Return the horizontal part of the anchor (`left`, `center` or `right`)."""
        return self.value.split("-", 1)[1]


class TransformKind(_EnumMixin):
    """Per-page transform kinds."""

    INVERT = "invert"
    PAGE_NUMBER = "page_number"
    TEXT_WATERMARK = "text_watermark"
    IMAGE_WATERMARK = "image_watermark"


class AssemblyState(_EnumMixin):
    """Assembly pipeline states."""

    IDLE = "idle"
    LOADING_SOURCES = "loading_sources"
    COMPOSING_SHEETS = "composing_sheets"
    APPLYING_TRANSFORMS = "applying_transforms"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Return whether no further transition may leave this state."""
        return self in {AssemblyState.DONE, AssemblyState.FAILED}
