"""Layout configuration and computed sheet models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pagecraft.typing.enums import Orientation
from pagecraft.typing.models.source import PageRef


class LayoutSpec(BaseModel):
    """Sheet layout requested by the caller.

    Values are checked by the layout composer, not here, so that an out of
    range configuration surfaces as `InvalidLayoutSpecError`.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    pages_per_sheet: int = 1
    orientation: Orientation = Orientation.PORTRAIT
    margin_pt: float = 18.0
    invert_colors: bool = False


class PageAspect(BaseModel):
    """Natural size of a source page in points."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    width: float
    height: float


class CellRect(BaseModel):
    """Rectangle in output-page points, origin at the bottom-left corner."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        """Return the x coordinate of the right edge."""
        return self.x + self.width

    @property
    def top(self) -> float:
        """Return the y coordinate of the top edge."""
        return self.y + self.height


class Placement(BaseModel):
    """Position of one source page on a sheet."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    slot: int = Field(ge=0, description="Cell index, row-major from the top-left cell.")
    column: int = Field(ge=0)
    row: int = Field(ge=0)
    cell: CellRect
    rect: CellRect = Field(description="Scaled page rectangle centered inside the cell.")
    scale: float = Field(gt=0.0)
    page_ref: PageRef | None = None


class Sheet(BaseModel):
    """One page of the assembled output."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int = Field(ge=0)
    width: float
    height: float
    placements: list[Placement]
