"""N-up sheet geometry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pagecraft.exceptions import InvalidLayoutSpecError
from pagecraft.typing.enums import Orientation
from pagecraft.typing.models import CellRect, LayoutSpec, PageAspect, Placement, Sheet

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pagecraft.typing.models import PageRef

# ISO A4 in points.
A4_WIDTH_PT = 595.28
A4_HEIGHT_PT = 841.89

SUPPORTED_PAGES_PER_SHEET = (1, 2, 4, 8)

# (cols, rows) per orientation; the longer sheet side gets more cells.
_GRID_TABLE: dict[Orientation, dict[int, tuple[int, int]]] = {
    Orientation.PORTRAIT: {1: (1, 1), 2: (1, 2), 4: (2, 2), 8: (2, 4)},
    Orientation.LANDSCAPE: {1: (1, 1), 2: (2, 1), 4: (2, 2), 8: (4, 2)},
}


def sheet_size(orientation: Orientation) -> tuple[float, float]:
    """Return output sheet width and height for an orientation.

    Args:
        orientation (Orientation): Requested orientation.

    Returns:
        tuple[float, float]: Sheet width and height in points.
    """
    if orientation == Orientation.LANDSCAPE:
        return A4_HEIGHT_PT, A4_WIDTH_PT
    return A4_WIDTH_PT, A4_HEIGHT_PT


def resolve_grid(pages_per_sheet: int, orientation: Orientation) -> tuple[int, int]:
    """Return the `(cols, rows)` grid for a pages-per-sheet value.

    Args:
        pages_per_sheet (int): Pages packed onto one sheet.
        orientation (Orientation): Sheet orientation.

    Raises:
        InvalidLayoutSpecError: If the value is not supported.

    Returns:
        tuple[int, int]: Columns and rows.
    """
    grid = _GRID_TABLE[Orientation(orientation)].get(pages_per_sheet)
    if grid is None:
        supported = ", ".join(str(value) for value in SUPPORTED_PAGES_PER_SHEET)
        raise InvalidLayoutSpecError(
            message=f"Unsupported pages per sheet {pages_per_sheet}. Expected one of: {supported}",
        )
    return grid


def cell_size(spec: LayoutSpec) -> tuple[float, float]:
    """Return the width and height of one grid cell.

    Margins are applied between cells and at the sheet edges.

    Args:
        spec (LayoutSpec): Layout configuration.

    Raises:
        InvalidLayoutSpecError: If the margin is negative or leaves no room for cells.

    Returns:
        tuple[float, float]: Cell width and height in points.
    """
    if spec.margin_pt < 0:
        raise InvalidLayoutSpecError(message=f"Margin must be >= 0, got {spec.margin_pt}")

    cols, rows = resolve_grid(spec.pages_per_sheet, spec.orientation)
    width, height = sheet_size(spec.orientation)
    cell_width = (width - (cols + 1) * spec.margin_pt) / cols
    cell_height = (height - (rows + 1) * spec.margin_pt) / rows
    if cell_width <= 0 or cell_height <= 0:
        raise InvalidLayoutSpecError(
            message=f"Margin {spec.margin_pt} leaves no room for a {cols}x{rows} grid",
        )
    return cell_width, cell_height


def validate_layout_spec(spec: LayoutSpec) -> None:
    """Reject an out of range layout before any work starts.

    One page per sheet is a plain page copy, so the margin is only checked
    against the grid when pages are packed onto sheets.

    Args:
        spec (LayoutSpec): Layout configuration.

    Raises:
        InvalidLayoutSpecError: If the margin is negative, the pages-per-sheet value
            is unsupported or the margin leaves no room for the grid.
    """
    if spec.margin_pt < 0:
        raise InvalidLayoutSpecError(message=f"Margin must be >= 0, got {spec.margin_pt}")
    resolve_grid(spec.pages_per_sheet, spec.orientation)
    if spec.pages_per_sheet > 1:
        cell_size(spec)


def cell_rect(column: int, row: int, spec: LayoutSpec) -> CellRect:
    """Return the rectangle of grid cell `(column, row)`; row 0 is the top row.

    Args:
        column (int): 0-based column.
        row (int): 0-based row counted from the top.
        spec (LayoutSpec): Layout configuration.

    Returns:
        CellRect: Cell rectangle, origin bottom-left.
    """
    margin = spec.margin_pt
    cell_width, cell_height = cell_size(spec)
    _, sheet_height = sheet_size(spec.orientation)
    return CellRect(
        x=margin + column * (cell_width + margin),
        y=sheet_height - margin - (row + 1) * cell_height - row * margin,
        width=cell_width,
        height=cell_height,
    )


def fit_page(page: PageAspect, cell: CellRect) -> tuple[CellRect, float]:
    """Scale a page uniformly to fit a cell and center it.

    Args:
        page (PageAspect): Natural page size.
        cell (CellRect): Target cell.

    Raises:
        InvalidLayoutSpecError: If the page has no area.

    Returns:
        tuple[CellRect, float]: Placed page rectangle and the applied scale.
    """
    if page.width <= 0 or page.height <= 0:
        raise InvalidLayoutSpecError(message=f"Page size must be positive, got {page.width}x{page.height}")

    scale = min(cell.width / page.width, cell.height / page.height)
    scaled_width = page.width * scale
    scaled_height = page.height * scale
    rect = CellRect(
        x=cell.x + (cell.width - scaled_width) / 2,
        y=cell.y + (cell.height - scaled_height) / 2,
        width=scaled_width,
        height=scaled_height,
    )
    return rect, scale


def compute_sheets(
    pages: Sequence[PageAspect],
    spec: LayoutSpec,
    page_refs: Sequence[PageRef] | None = None,
) -> list[Sheet]:
    """Pack pages onto sheets, `spec.pages_per_sheet` at a time.

    The last sheet may be partial; its remaining cells stay empty.

    Args:
        pages (Sequence[PageAspect]): Natural size of each page, in output order.
        spec (LayoutSpec): Layout configuration.
        page_refs (Sequence[PageRef] | None): Optional references attached to placements,
            aligned with `pages`.

    Raises:
        InvalidLayoutSpecError: If the layout is out of range, `pages` is empty or
            `page_refs` is not aligned with `pages`.

    Returns:
        list[Sheet]: Computed sheets.
    """
    if not pages:
        raise InvalidLayoutSpecError(message="At least one page is required to compose sheets")
    if page_refs is not None and len(page_refs) != len(pages):
        raise InvalidLayoutSpecError(message="Page references must align with page sizes")

    cols, _ = resolve_grid(spec.pages_per_sheet, spec.orientation)
    cells = [cell_rect(slot % cols, slot // cols, spec) for slot in range(spec.pages_per_sheet)]
    width, height = sheet_size(spec.orientation)

    sheets: list[Sheet] = []
    for sheet_index, start in enumerate(range(0, len(pages), spec.pages_per_sheet)):
        placements: list[Placement] = []
        for slot, page in enumerate(pages[start : start + spec.pages_per_sheet]):
            rect, scale = fit_page(page, cells[slot])
            placements.append(
                Placement(
                    slot=slot,
                    column=slot % cols,
                    row=slot // cols,
                    cell=cells[slot],
                    rect=rect,
                    scale=scale,
                    page_ref=page_refs[start + slot] if page_refs is not None else None,
                ),
            )
        sheets.append(Sheet(index=sheet_index, width=width, height=height, placements=placements))
    return sheets


def to_top_left_rect(rect: CellRect, sheet_height: float) -> tuple[float, float, float, float]:
    """Convert a bottom-left origin rectangle into top-left `(x0, y0, x1, y1)`.

    PyMuPDF addresses page space from the top-left corner.

    Args:
        rect (CellRect): Rectangle with bottom-left origin.
        sheet_height (float): Height of the page the rectangle lives on.

    Returns:
        tuple[float, float, float, float]: Corner coordinates.
    """
    y0 = sheet_height - rect.top
    return rect.x, y0, rect.right, y0 + rect.height
