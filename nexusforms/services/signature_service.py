"""
Signature Service – a headless drawing surface for handwritten signatures.

``SignaturePad`` mirrors the browser pad: pointer events draw onto a
transparent RGBA canvas sized ``width × height`` CSS pixels times the
device-pixel ratio; an uploaded image is stretched onto the same box.
Exports are PNG data URIs at ``native size × device_pixel_ratio × scale``.

State machine::

    EMPTY --pointer_down--> DRAWING --pointer_up (ink)--> PENDING_ACCEPT
    PENDING_ACCEPT --accept--> ACCEPTED
    any --discard--> EMPTY
    any --load_image--> PENDING_ACCEPT
"""

from __future__ import annotations

import io
import logging
from enum import Enum
from typing import Optional, Sequence

from PIL import Image, ImageDraw, UnidentifiedImageError

from nexusforms.services.layout_service import encode_png_data_url

logger = logging.getLogger(__name__)

PEN_COLOR = (17, 24, 39, 255)  # #111827
PEN_WIDTH = 2.0  # CSS px, midway between the pad's min and max width

Point = tuple[float, float]


class SignatureState(str, Enum):
    EMPTY = "empty"
    DRAWING = "drawing"
    PENDING_ACCEPT = "pendingAccept"
    ACCEPTED = "accepted"


class SignaturePad:
    """Drawing surface plus the accepted signature copy."""

    def __init__(
        self,
        width: int = 600,
        height: int = 200,
        device_pixel_ratio: float = 1.0,
        pen_color: tuple[int, int, int, int] = PEN_COLOR,
        pen_width: float = PEN_WIDTH,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"pad size must be positive, got {width}x{height}")
        if device_pixel_ratio <= 0:
            raise ValueError(f"device_pixel_ratio must be positive, got {device_pixel_ratio}")
        self.width = width
        self.height = height
        self.ratio = device_pixel_ratio
        self.pen_color = pen_color
        self.pen_width = pen_width
        self.state = SignatureState.EMPTY
        self._accepted: Optional[str] = None
        self._last: Optional[Point] = None
        self._canvas = self._blank()

    # ------------------------------------------------------------------
    # Canvas
    # ------------------------------------------------------------------

    @property
    def pixel_size(self) -> tuple[int, int]:
        return round(self.width * self.ratio), round(self.height * self.ratio)

    def _blank(self) -> Image.Image:
        return Image.new("RGBA", self.pixel_size, (0, 0, 0, 0))

    def _px(self, point: Point) -> Point:
        return point[0] * self.ratio, point[1] * self.ratio

    @property
    def has_ink(self) -> bool:
        return self._canvas.getchannel("A").getbbox() is not None

    # ------------------------------------------------------------------
    # Pointer input (CSS pixel coordinates)
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> None:
        self.state = SignatureState.DRAWING
        self._last = (x, y)
        self._dot((x, y))

    def pointer_move(self, x: float, y: float) -> None:
        if self.state is not SignatureState.DRAWING or self._last is None:
            return
        draw = ImageDraw.Draw(self._canvas)
        draw.line(
            [self._px(self._last), self._px((x, y))],
            fill=self.pen_color,
            width=max(1, round(self.pen_width * self.ratio)),
            joint="curve",
        )
        self._dot((x, y))
        self._last = (x, y)

    def pointer_up(self) -> SignatureState:
        if self.state is not SignatureState.DRAWING:
            return self.state
        self._last = None
        self.state = SignatureState.PENDING_ACCEPT if self.has_ink else SignatureState.EMPTY
        return self.state

    def _dot(self, point: Point) -> None:
        # Round caps so single taps and segment joints leave ink.
        cx, cy = self._px(point)
        r = self.pen_width * self.ratio / 2
        ImageDraw.Draw(self._canvas).ellipse([cx - r, cy - r, cx + r, cy + r], fill=self.pen_color)

    def draw_strokes(self, strokes: Sequence[Sequence[Point]]) -> SignatureState:
        """Replay whole strokes (lists of points) as pointer sequences."""
        for stroke in strokes:
            if not stroke:
                continue
            self.pointer_down(*stroke[0])
            for x, y in stroke[1:]:
                self.pointer_move(x, y)
            self.pointer_up()
        return self.state

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def load_image(self, data: bytes) -> SignatureState:
        """
        Replace the canvas with an uploaded image stretched to the pad box.

        The aspect ratio of the upload is not preserved. Raises ValueError
        when *data* is not a decodable image.
        """
        try:
            img = Image.open(io.BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"uploaded signature is not a readable image: {e}") from e
        self._canvas = img.convert("RGBA").resize(self.pixel_size, Image.LANCZOS)
        self._last = None
        self.state = SignatureState.PENDING_ACCEPT
        logger.debug("Signature image loaded (%dx%d → %dx%d)", *img.size, *self.pixel_size)
        return self.state

    # ------------------------------------------------------------------
    # Export / accept / discard
    # ------------------------------------------------------------------

    def get_data_url(self, scale: float = 1.0) -> Optional[str]:
        """PNG data URI at ``native × ratio × scale``, or None when the pad is empty."""
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        if not self.has_ink:
            return None
        size = (round(self.width * self.ratio * scale), round(self.height * self.ratio * scale))
        img = self._canvas if size == self._canvas.size else self._canvas.resize(size, Image.LANCZOS)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return encode_png_data_url(buf.getvalue())

    def accept(self, scale: float = 1.0) -> Optional[str]:
        """Store an exported copy of the current ink; later strokes leave it untouched."""
        data_url = self.get_data_url(scale)
        if data_url is None:
            return None
        self._accepted = data_url
        self.state = SignatureState.ACCEPTED
        return data_url

    @property
    def accepted_data_url(self) -> Optional[str]:
        return self._accepted

    def discard(self) -> None:
        self._canvas = self._blank()
        self._accepted = None
        self._last = None
        self.state = SignatureState.EMPTY


def render_strokes(
    strokes: Sequence[Sequence[Point]],
    width: int = 600,
    height: int = 200,
    device_pixel_ratio: float = 1.0,
    scale: float = 1.0,
) -> Optional[str]:
    """Rasterise freehand strokes into a PNG data URI (None when no ink)."""
    pad = SignaturePad(width, height, device_pixel_ratio)
    pad.draw_strokes(strokes)
    return pad.get_data_url(scale)


def render_upload(
    data: bytes,
    width: int = 600,
    height: int = 200,
    device_pixel_ratio: float = 1.0,
    scale: float = 1.0,
) -> Optional[str]:
    """Stretch an uploaded image onto the pad box and export it."""
    pad = SignaturePad(width, height, device_pixel_ratio)
    pad.load_image(data)
    return pad.get_data_url(scale)
