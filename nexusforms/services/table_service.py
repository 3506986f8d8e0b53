"""
Table Service – draws a CellMatrix as a grid at a given vertical position.

The renderer is a function of "where to start" → "where it ended": it
returns the y just below the last row and leaves moving the document
cursor to the caller. Rows are never split; when the next row does not
fit, a new page is started and the header row (if any) is repeated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional, Sequence

from nexusforms.services.layout_service import PT_TO_MM, RGB, RenderContext

logger = logging.getLogger(__name__)

_WIDTH_TOLERANCE = 0.01  # mm
_FIT_TOLERANCE = 1e-6  # mm


@dataclass(frozen=True)
class CellMatrix:
    """
    Immutable table content: string rows, optional header, width hints.

    ``column_widths`` are absolute millimetres, or fractions of the
    content width when ``proportional`` is set. Without hints the
    content width is split evenly.
    """
    rows: tuple[tuple[str, ...], ...]
    header: Optional[tuple[str, ...]] = None
    column_widths: Optional[tuple[float, ...]] = None
    proportional: bool = False

    @classmethod
    def of(
        cls,
        rows: Iterable[Sequence[object]],
        header: Sequence[object] | None = None,
        column_widths: Sequence[float] | None = None,
        proportional: bool = False,
    ) -> "CellMatrix":
        def _cells(values: Sequence[object]) -> tuple[str, ...]:
            return tuple("" if v is None else str(v) for v in values)

        return cls(
            rows=tuple(_cells(r) for r in rows),
            header=_cells(header) if header is not None else None,
            column_widths=tuple(column_widths) if column_widths is not None else None,
            proportional=proportional,
        )

    @property
    def column_count(self) -> int:
        if self.header is not None:
            return len(self.header)
        if self.column_widths is not None:
            return len(self.column_widths)
        return len(self.rows[0]) if self.rows else 0

    def resolve_widths(self, content_width: float) -> list[float]:
        n = self.column_count
        if self.column_widths is None:
            return [content_width / n] * n if n else []
        widths = list(self.column_widths)
        if self.proportional:
            widths = [w * content_width for w in widths]
        if sum(widths) > content_width + _WIDTH_TOLERANCE:
            raise ValueError(
                f"column widths sum to {sum(widths):.2f} mm, "
                f"wider than the {content_width:.2f} mm content area"
            )
        return widths


@dataclass(frozen=True)
class TableStyle:
    theme: Literal["grid", "plain"] = "grid"
    font_size: float = 9.0
    cell_padding: float = 2.0
    head_fill: Optional[RGB] = (59, 130, 246)
    head_text_color: RGB = (255, 255, 255)
    text_color: RGB = (0, 0, 0)
    border_color: RGB = (170, 170, 170)
    line_width: float = 0.1
    bold_columns: frozenset[int] = field(default_factory=frozenset)
    italic_columns: frozenset[int] = field(default_factory=frozenset)
    x: Optional[float] = None  # left edge; defaults to the left margin


PLAIN = TableStyle(theme="plain", head_fill=None, head_text_color=(0, 0, 0))


@dataclass
class _LaidOutRow:
    lines: list[list[str]]
    height: float


def _font_for(style: TableStyle, col: int, header: bool) -> str:
    if header or col in style.bold_columns:
        return "Helvetica-Bold"
    if col in style.italic_columns:
        return "Helvetica-Oblique"
    return "Helvetica"


def _layout_row(
    ctx: RenderContext, cells: Sequence[str], widths: list[float], style: TableStyle, header: bool
) -> _LaidOutRow:
    if len(cells) != len(widths):
        raise ValueError(f"row has {len(cells)} cells, table has {len(widths)} columns")
    line_h = ctx.line_height(style.font_size)
    lines = [
        ctx.wrap_text(
            cell,
            max(w - 2 * style.cell_padding, 1.0),
            style.font_size,
            _font_for(style, col, header),
        )
        for col, (cell, w) in enumerate(zip(cells, widths))
    ]
    tallest = max((len(c) for c in lines), default=1)
    return _LaidOutRow(lines, tallest * line_h + 2 * style.cell_padding)


def _draw_row(
    ctx: RenderContext,
    row: _LaidOutRow,
    x0: float,
    y: float,
    widths: list[float],
    style: TableStyle,
    header: bool,
) -> None:
    line_h = ctx.line_height(style.font_size)
    ascent = style.font_size * PT_TO_MM * 0.85
    if header and style.head_fill is not None:
        ctx.draw_rect(x0, y, sum(widths), row.height, stroke=False, fill=style.head_fill)
    x = x0
    for col, (cell_lines, w) in enumerate(zip(row.lines, widths)):
        if style.theme == "grid":
            ctx.draw_rect(x, y, w, row.height, line_width=style.line_width, color=style.border_color)
        color = style.head_text_color if header else style.text_color
        for i, line in enumerate(cell_lines):
            if not line:
                continue
            ctx.draw_text(
                line,
                x + style.cell_padding,
                y + style.cell_padding + ascent + i * line_h,
                size=style.font_size,
                font=_font_for(style, col, header),
                color=color,
            )
        x += w


def row_height(
    ctx: RenderContext,
    cells: Sequence[str],
    widths: Sequence[float],
    style: TableStyle = TableStyle(),
    header: bool = False,
) -> float:
    """Height of one row exactly as ``render_table`` lays it out, wrapping included."""
    return _layout_row(ctx, cells, list(widths), style, header).height


def lead_height(ctx: RenderContext, matrix: CellMatrix, style: TableStyle = TableStyle()) -> float:
    """Header row plus first data row: the least a table needs on the page it starts on."""
    widths = matrix.resolve_widths(ctx.content_width)
    height = row_height(ctx, matrix.header, widths, style, True) if matrix.header else 0.0
    if matrix.rows:
        height += row_height(ctx, matrix.rows[0], widths, style)
    return height


def table_height(ctx: RenderContext, matrix: CellMatrix, style: TableStyle = TableStyle()) -> float:
    """Height of the whole table drawn without a page break."""
    widths = matrix.resolve_widths(ctx.content_width)
    height = row_height(ctx, matrix.header, widths, style, True) if matrix.header else 0.0
    return height + sum(row_height(ctx, cells, widths, style) for cells in matrix.rows)


def render_table(
    ctx: RenderContext,
    matrix: CellMatrix,
    start_y: float,
    style: TableStyle = TableStyle(),
) -> float:
    """
    Render *matrix* starting at *start_y* on the current page.

    Returns the y coordinate immediately below the table, on whichever
    page the table ended. The caller decides where its cursor goes next.
    """
    widths = matrix.resolve_widths(ctx.content_width)
    if not widths:
        return start_y
    x0 = style.x if style.x is not None else ctx.left
    limit = ctx.cursor.bottom_limit + _FIT_TOLERANCE
    top = ctx.cursor.margins.top

    head = _layout_row(ctx, matrix.header, widths, style, True) if matrix.header else None
    y = start_y
    need_header = head is not None

    if head is not None and not matrix.rows:
        if y + head.height > limit and y > top + 1e-6:
            ctx.add_page()
            y = top
        _draw_row(ctx, head, x0, y, widths, style, True)
        return y + head.height

    for index, cells in enumerate(matrix.rows):
        row = _layout_row(ctx, cells, widths, style, False)
        needed = row.height + (head.height if need_header and head else 0.0)
        if y + needed > limit and y > top + 1e-6:
            ctx.add_page()
            y = top
            need_header = head is not None
        if need_header and head is not None:
            _draw_row(ctx, head, x0, y, widths, style, True)
            y += head.height
            need_header = False
        if y + row.height > limit:
            ctx.warn("row-too-tall", f"table row {index + 1} is taller than the page and is clipped")
        _draw_row(ctx, row, x0, y, widths, style, False)
        y += row.height

    logger.debug("Table of %d rows ended at y=%.1f on page %d", len(matrix.rows), y, ctx.page.number)
    return y
