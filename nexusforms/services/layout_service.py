"""
Layout Service – page/cursor bookkeeping for generated PDF documents.

All geometry is in millimetres measured from the TOP-LEFT corner of an
A4 page (210 × 297 mm unless overridden). Drawing calls are recorded as
operations on the current page; nothing touches ReportLab until
``PdfDocument.to_bytes()`` replays them onto a canvas. Recording first
lets the final page-number pass know the total page count, and lets
tests inspect what landed on which page.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from PIL import Image, UnidentifiedImageError
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from nexusforms.models.schemas import RenderWarning

logger = logging.getLogger(__name__)

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0
PT_TO_MM = 25.4 / 72.0
LINE_HEIGHT_FACTOR = 1.15

RGB = tuple[int, int, int]
BLACK: RGB = (0, 0, 0)

# Standard PDF fonts only cover cp1252; map the few characters the form
# labels use that fall outside it.
_SUBSTITUTIONS = str.maketrans({
    "₂": "2",   # subscript two (CO₂)
    "−": "-",
})


def pdf_safe(text: object) -> str:
    """Coerce *text* to a string the standard Helvetica family can draw."""
    if text is None:
        return ""
    s = str(text).translate(_SUBSTITUTIONS)
    return s.encode("cp1252", "replace").decode("cp1252")


def decode_data_url(source: Union[str, bytes]) -> bytes:
    """Return raw bytes from a ``data:...;base64,`` URI, bare base64, or bytes."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    payload = source.strip()
    if payload.startswith("data:"):
        payload = payload.split(",", 1)[1] if "," in payload else ""
    return base64.b64decode(payload, validate=False)


def encode_png_data_url(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")


# ---------------------------------------------------------------------------
# Recorded drawing operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextOp:
    x: float
    y: float  # baseline, from top of page
    text: str
    font: str
    size: float
    color: RGB = BLACK
    align: Literal["left", "center", "right"] = "left"


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.2
    color: RGB = BLACK


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    w: float
    h: float
    stroke: bool = True
    fill: Optional[RGB] = None
    line_width: float = 0.2
    color: RGB = BLACK


@dataclass(frozen=True)
class CircleOp:
    x: float
    y: float
    r: float
    stroke: bool = True
    fill: Optional[RGB] = None


@dataclass(frozen=True)
class ImageOp:
    image: Image.Image
    x: float
    y: float
    w: float
    h: float


DrawOp = Union[TextOp, LineOp, RectOp, CircleOp, ImageOp]


@dataclass
class Page:
    number: int
    ops: list[DrawOp] = field(default_factory=list)

    def texts(self) -> list[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


@dataclass
class Margins:
    top: float = 20.0
    bottom: float = 20.0
    left: float = 15.0
    right: float = 15.0


@dataclass
class PageCursor:
    """Write position on the current page."""
    page_width: float = A4_WIDTH_MM
    page_height: float = A4_HEIGHT_MM
    margins: Margins = field(default_factory=Margins)
    page_index: int = 0
    y: float = 0.0

    def __post_init__(self) -> None:
        if not self.y:
            self.y = self.margins.top

    @property
    def bottom_limit(self) -> float:
        return self.page_height - self.margins.bottom

    @property
    def content_width(self) -> float:
        return self.page_width - self.margins.left - self.margins.right

    @property
    def remaining(self) -> float:
        return self.bottom_limit - self.y

    @property
    def at_top(self) -> bool:
        return self.y <= self.margins.top + 1e-6


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

@dataclass
class PdfDocument:
    """A finished document: its pages, the warnings met, and a serialiser."""
    title: str
    page_width: float
    page_height: float
    pages: list[Page]
    warnings: list[RenderWarning] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self) -> list[str]:
        return [t for page in self.pages for t in page.texts()]

    def to_bytes(self) -> bytes:
        """Replay the recorded operations onto a ReportLab canvas."""
        buf = io.BytesIO()
        c = canvas.Canvas(
            buf,
            pagesize=(self.page_width * mm, self.page_height * mm),
            invariant=1,
        )
        c.setTitle(self.title)
        c.setCreator("Nexus Forms Engine")
        for page in self.pages:
            for op in page.ops:
                self._replay(c, op)
            c.showPage()
        c.save()
        return buf.getvalue()

    def _y(self, y_top: float) -> float:
        return (self.page_height - y_top) * mm

    def _replay(self, c: canvas.Canvas, op: DrawOp) -> None:
        if isinstance(op, TextOp):
            c.setFont(op.font, op.size)
            c.setFillColorRGB(*(v / 255.0 for v in op.color))
            x, y = op.x * mm, self._y(op.y)
            if op.align == "center":
                c.drawCentredString(x, y, op.text)
            elif op.align == "right":
                c.drawRightString(x, y, op.text)
            else:
                c.drawString(x, y, op.text)
        elif isinstance(op, LineOp):
            c.setLineWidth(op.width * mm)
            c.setStrokeColorRGB(*(v / 255.0 for v in op.color))
            c.line(op.x1 * mm, self._y(op.y1), op.x2 * mm, self._y(op.y2))
        elif isinstance(op, RectOp):
            c.setLineWidth(op.line_width * mm)
            c.setStrokeColorRGB(*(v / 255.0 for v in op.color))
            if op.fill is not None:
                c.setFillColorRGB(*(v / 255.0 for v in op.fill))
            c.rect(
                op.x * mm, self._y(op.y + op.h), op.w * mm, op.h * mm,
                stroke=int(op.stroke), fill=int(op.fill is not None),
            )
        elif isinstance(op, CircleOp):
            c.setStrokeColorRGB(0, 0, 0)
            if op.fill is not None:
                c.setFillColorRGB(*(v / 255.0 for v in op.fill))
            c.circle(
                op.x * mm, self._y(op.y), op.r * mm,
                stroke=int(op.stroke), fill=int(op.fill is not None),
            )
        elif isinstance(op, ImageOp):
            c.drawImage(
                ImageReader(op.image), op.x * mm, self._y(op.y + op.h),
                width=op.w * mm, height=op.h * mm, mask="auto",
            )


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------

class RenderContext:
    """
    Explicit layout state for one document build.

    Owns the cursor, the page list, style defaults, and the warnings
    collected along the way. One instance per document; never shared.
    """

    def __init__(
        self,
        title: str = "",
        page_width: float = A4_WIDTH_MM,
        page_height: float = A4_HEIGHT_MM,
        margins: Margins | None = None,
        font: str = "Helvetica",
        font_size: float = 10.0,
    ) -> None:
        self.title = title
        self.cursor = PageCursor(page_width, page_height, margins or Margins())
        self.pages: list[Page] = [Page(number=1)]
        self.warnings: list[RenderWarning] = []
        self.font = font
        self.font_size = font_size
        self._finished = False

    # ------------------------------------------------------------------
    # Pages & cursor
    # ------------------------------------------------------------------

    @property
    def page(self) -> Page:
        return self.pages[self.cursor.page_index]

    @property
    def content_width(self) -> float:
        return self.cursor.content_width

    @property
    def left(self) -> float:
        return self.cursor.margins.left

    @property
    def y(self) -> float:
        return self.cursor.y

    def add_page(self) -> Page:
        """Append a page and reset the cursor to its top margin."""
        page = Page(number=len(self.pages) + 1)
        self.pages.append(page)
        self.cursor.page_index = len(self.pages) - 1
        self.cursor.y = self.cursor.margins.top
        logger.debug("Page break → page %d", page.number)
        return page

    def ensure_space(self, needed: float) -> bool:
        """
        Start a new page if *needed* mm would run past the bottom margin.

        Returns True when a page break happened. A page that is still
        empty is never abandoned, even when the block is taller than it.
        """
        if needed < 0:
            raise ValueError(f"needed height must be >= 0, got {needed}")
        if self.cursor.y + needed > self.cursor.bottom_limit and not self.cursor.at_top:
            self.add_page()
            return True
        return False

    def advance(self, height: float) -> None:
        if height < 0:
            raise ValueError(f"advance height must be >= 0, got {height}")
        self.cursor.y += height
        if self.cursor.y > self.cursor.bottom_limit:
            self.add_page()

    def move_to(self, y: float) -> None:
        """Place the cursor at *y* on the current page (e.g. below a table)."""
        self.cursor.y = y
        if self.cursor.y > self.cursor.bottom_limit:
            self.add_page()

    # ------------------------------------------------------------------
    # Text metrics
    # ------------------------------------------------------------------

    def measure(self, text: str, size: float | None = None, font: str | None = None) -> float:
        """Width of *text* in mm using the font's real glyph metrics."""
        return stringWidth(pdf_safe(text), font or self.font, size or self.font_size) * PT_TO_MM

    @staticmethod
    def line_height(size: float) -> float:
        return size * PT_TO_MM * LINE_HEIGHT_FACTOR

    def wrap_text(
        self, text: str, max_width: float, size: float | None = None, font: str | None = None
    ) -> list[str]:
        """
        Split *text* into lines no wider than *max_width* mm.

        Explicit newlines start new lines. Words wider than the limit
        are broken between characters.
        """
        size = size or self.font_size
        font = font or self.font
        lines: list[str] = []
        for paragraph in pdf_safe(text).split("\n"):
            words = paragraph.split()
            if not words:
                lines.append("")
                continue
            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if self.measure(candidate, size, font) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                while self.measure(word, size, font) > max_width:
                    cut = self._fit_prefix(word, max_width, size, font)
                    lines.append(word[:cut])
                    word = word[cut:]
                current = word
            lines.append(current)
        return lines

    def _fit_prefix(self, word: str, max_width: float, size: float, font: str) -> int:
        cut = 1
        while cut < len(word) and self.measure(word[: cut + 1], size, font) <= max_width:
            cut += 1
        return cut

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        size: float | None = None,
        font: str | None = None,
        color: RGB = BLACK,
        align: Literal["left", "center", "right"] = "left",
    ) -> None:
        self.page.ops.append(
            TextOp(x, y, pdf_safe(text), font or self.font, size or self.font_size, color, align)
        )

    def draw_lines(
        self,
        lines: list[str],
        x: float,
        y: float,
        *,
        size: float | None = None,
        font: str | None = None,
        spacing: float | None = None,
    ) -> float:
        """Draw pre-wrapped *lines* from baseline *y*; return the y after the block."""
        size = size or self.font_size
        step = spacing or self.line_height(size)
        for i, line in enumerate(lines):
            self.draw_text(line, x, y + i * step, size=size, font=font)
        return y + len(lines) * step

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, *, width: float = 0.2) -> None:
        self.page.ops.append(LineOp(x1, y1, x2, y2, width))

    def draw_rect(
        self,
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        stroke: bool = True,
        fill: RGB | None = None,
        line_width: float = 0.2,
        color: RGB = BLACK,
    ) -> None:
        self.page.ops.append(RectOp(x, y, w, h, stroke, fill, line_width, color))

    def draw_circle(self, x: float, y: float, r: float, *, stroke: bool = True, fill: RGB | None = None) -> None:
        self.page.ops.append(CircleOp(x, y, r, stroke, fill))

    def draw_image(
        self,
        source: Union[str, bytes, None],
        x: float,
        y: float,
        w: float,
        h: float,
        *,
        label: str = "image",
    ) -> Optional[RenderWarning]:
        """
        Place an image stretched to the (w, h) box.

        A source that cannot be decoded is skipped: the defect is logged,
        recorded on the context, and returned. Rendering carries on.
        """
        if source is None or source == b"" or source == "":
            return self.warn("image-missing", f"{label}: no image data")
        try:
            raw = decode_data_url(source)
            img = Image.open(io.BytesIO(raw))
            img.load()
        except (UnidentifiedImageError, binascii.Error, ValueError, OSError) as e:
            return self.warn("image-decode", f"{label}: {e}")
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA")
        self.page.ops.append(ImageOp(img, x, y, w, h))
        return None

    def warn(self, code: str, message: str) -> RenderWarning:
        warning = RenderWarning(code=code, message=message, page=self.page.number)
        logger.warning("Render warning [%s] on page %d: %s", code, warning.page, message)
        self.warnings.append(warning)
        return warning

    # ------------------------------------------------------------------
    # Finalisation
    # ------------------------------------------------------------------

    def stamp_page_numbers(self, size: float = 8.0) -> None:
        """Write ``"{index}/{total}"`` bottom-right on every page (once)."""
        total = len(self.pages)
        x = self.cursor.page_width - 20
        y = self.cursor.page_height - 10
        for page in self.pages:
            page.ops.append(TextOp(x, y, f"{page.number}/{total}", "Helvetica", size))

    def finish(self) -> PdfDocument:
        if self._finished:
            raise RuntimeError("document already finished")
        self.stamp_page_numbers()
        self._finished = True
        return PdfDocument(
            title=self.title,
            page_width=self.cursor.page_width,
            page_height=self.cursor.page_height,
            pages=self.pages,
            warnings=list(self.warnings),
        )
