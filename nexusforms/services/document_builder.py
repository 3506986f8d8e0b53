"""
Document Builder – shared sections for every form-type builder.

A builder is a fixed pipeline over one DocumentData record: header band,
a sequence of sections (each guarded by ``ensure_space`` with a height
estimate), declaration, signature block, and finally the page-number
stamp. Builders only lay out the strings they are given; totals and
percentages arrive pre-computed.
"""

from __future__ import annotations

import logging
from typing import Generic, Optional, Sequence, TypeVar

from nexusforms.services.i18n_service import Translate, get_translator
from nexusforms.services.layout_service import PdfDocument, RenderContext
from nexusforms.services.table_service import CellMatrix, TableStyle, lead_height, render_table, table_height

logger = logging.getLogger(__name__)

D = TypeVar("D")

# ── Geometry (mm) ─────────────────────────────────────────────────────
GUTTER = 10.0
HEADING_GAP = 8.0
LOGO_W, LOGO_H = 40.0, 12.0
SIGNATURE_BOX_W, SIGNATURE_BOX_H = 70.0, 24.0
SIGNATURE_INSET = 2.0

TITLE_SIZE = 16.0
SUBTITLE_SIZE = 10.0
HEADING_SIZE = 12.0
BODY_SIZE = 9.0

KV_STYLE = TableStyle(
    theme="plain",
    font_size=BODY_SIZE,
    cell_padding=2.0,
    head_fill=None,
    head_text_color=(0, 0, 0),
    bold_columns=frozenset({0, 2, 4}),
)


def money(value: str) -> str:
    """``€`` + the supplied amount, ``€0.00`` when blank."""
    value = (value or "").strip()
    return f"€{value or '0.00'}"


def percent(value: str) -> str:
    value = (value or "").strip()
    return f"{value}%" if value else ""


def non_blank(rows: Sequence[D]) -> list[D]:
    """Drop rows whose significant fields are all blank (``row.is_blank()``)."""
    return [r for r in rows if not r.is_blank()]


class DocumentBuilder(Generic[D]):
    """
    Base class for the per-form builders.

    Subclasses implement :meth:`render`. ``translate`` maps label keys to
    display strings; ``logo`` is raw image bytes (or ``None`` for no logo).
    """

    title_key: str = ""

    def __init__(self, translate: Optional[Translate] = None, logo: Optional[bytes] = None) -> None:
        self.t: Translate = translate or get_translator("en")
        self.logo = logo

    def build(self, data: D) -> PdfDocument:
        ctx = RenderContext(title=self.t(self.title_key))
        self.render(ctx, data)
        doc = ctx.finish()
        logger.info(
            "%s built: %d page(s), %d warning(s)",
            type(self).__name__, doc.page_count, len(doc.warnings),
        )
        return doc

    def render(self, ctx: RenderContext, data: D) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def draw_header(self, ctx: RenderContext, title: str, subtitle: str = "") -> None:
        """Title (and subtitle) top-left, logo top-right."""
        if self.logo is not None:
            x = ctx.cursor.page_width - ctx.cursor.margins.right - LOGO_W
            ctx.draw_image(self.logo, x, ctx.y - 5, LOGO_W, LOGO_H, label="logo")
        ctx.draw_text(title, ctx.left, ctx.y + 5, size=TITLE_SIZE, font="Helvetica-Bold")
        ctx.advance(11)
        if subtitle:
            ctx.draw_text(subtitle, ctx.left, ctx.y + 5, size=SUBTITLE_SIZE)
        ctx.advance(12)

    def heading(self, ctx: RenderContext, text: str, body_estimate: float = 0.0) -> None:
        """Section heading, kept on the same page as *body_estimate* mm of content."""
        ctx.ensure_space(HEADING_GAP + body_estimate)
        ctx.draw_text(text, ctx.left, ctx.y, size=HEADING_SIZE, font="Helvetica-Bold")
        ctx.advance(HEADING_GAP)

    def table(
        self,
        ctx: RenderContext,
        matrix: CellMatrix,
        style: TableStyle = KV_STYLE,
        gutter: float = GUTTER,
    ) -> None:
        end_y = render_table(ctx, matrix, ctx.y, style)
        ctx.move_to(end_y)
        ctx.advance(gutter)

    def kv_section(
        self,
        ctx: RenderContext,
        heading: str,
        rows: Sequence[Sequence[object]],
        widths: Sequence[float],
        style: TableStyle = KV_STYLE,
    ) -> None:
        """Heading plus a borderless label/value table, kept on one page."""
        matrix = CellMatrix.of(rows, column_widths=widths)
        self.heading(ctx, heading, table_height(ctx, matrix, style))
        self.table(ctx, matrix, style)

    def table_section(
        self,
        ctx: RenderContext,
        heading: str,
        matrix: CellMatrix,
        style: TableStyle,
    ) -> None:
        """Heading plus a long table; the heading never ends a page without the table's first row."""
        self.heading(ctx, heading, lead_height(ctx, matrix, style))
        self.table(ctx, matrix, style)

    def paragraph(
        self,
        ctx: RenderContext,
        text: str,
        *,
        size: float = BODY_SIZE,
        font: str = "Helvetica",
        indent: float = 0.0,
        gutter: float = GUTTER,
    ) -> None:
        """Wrapped text, broken across pages line by line when needed."""
        step = ctx.line_height(size) + 1.0
        lines = ctx.wrap_text(text, ctx.content_width - 2 * indent, size, font)
        for line in lines:
            ctx.ensure_space(step)
            ctx.draw_text(line, ctx.left + indent, ctx.y, size=size, font=font)
            ctx.advance(step)
        ctx.advance(gutter)

    def paragraph_height(self, ctx: RenderContext, text: str, size: float = BODY_SIZE, indent: float = 0.0) -> float:
        lines = ctx.wrap_text(text, ctx.content_width - 2 * indent, size)
        return len(lines) * (ctx.line_height(size) + 1.0)

    def signature_block(
        self,
        ctx: RenderContext,
        typed_name: str,
        signed_date: str,
        image: Optional[str],
    ) -> None:
        """
        Signature row: the captured image in a fixed box when present,
        otherwise the typed name in italics. A blank date renders blank.
        """
        if not image:
            matrix = CellMatrix.of(
                [[self.t("form.signature") + ":", typed_name, self.t("form.date") + ":", signed_date]],
                column_widths=(25, 70, 20, 50),
            )
            style = TableStyle(
                theme="plain", font_size=BODY_SIZE, head_fill=None,
                bold_columns=frozenset({0, 2}), italic_columns=frozenset({1}),
            )
            ctx.ensure_space(table_height(ctx, matrix, style))
            self.table(ctx, matrix, style, gutter=0.0)
            return

        ctx.ensure_space(SIGNATURE_BOX_H + 6)
        top = ctx.y
        x = ctx.left + 25
        ctx.draw_text(self.t("form.signature") + ":", ctx.left, top + 5, size=BODY_SIZE, font="Helvetica-Bold")
        ctx.draw_rect(x, top, SIGNATURE_BOX_W, SIGNATURE_BOX_H, line_width=0.2)
        ctx.draw_image(
            image,
            x + SIGNATURE_INSET,
            top + SIGNATURE_INSET,
            SIGNATURE_BOX_W - 2 * SIGNATURE_INSET,
            SIGNATURE_BOX_H - 2 * SIGNATURE_INSET,
            label="signature",
        )
        date_x = x + SIGNATURE_BOX_W + 5
        ctx.draw_text(self.t("form.date") + ":", date_x, top + 5, size=BODY_SIZE, font="Helvetica-Bold")
        ctx.draw_text(signed_date, date_x + 20, top + 5, size=BODY_SIZE)
        if typed_name:
            ctx.draw_text(
                typed_name, x, top + SIGNATURE_BOX_H + 4, size=8, font="Helvetica-Oblique"
            )
        ctx.advance(SIGNATURE_BOX_H + 6)
