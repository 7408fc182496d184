"""Signature capture — freehand strokes to an embeddable PNG payload.

The pad accumulates strokes (polylines of ``(x, y)`` samples). ``save()``
rasterizes only the drawn region (trimmed bounding box plus pen padding)
and returns a self-contained ``data:`` URL suitable for storing directly
in an agreement record.
"""

from __future__ import annotations

import base64
import io
import json
import math
from pathlib import Path

from PIL import Image, ImageDraw

Point = tuple[float, float]
Stroke = list[Point]

PAYLOAD_PREFIX = "data:image/png;base64,"


class EmptySignatureError(ValueError):
    """Raised by :meth:`SignaturePad.save` when nothing has been drawn."""


def _point(sample: object) -> Point:
    if (
        not isinstance(sample, (list, tuple))
        or len(sample) != 2
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in sample)
    ):
        raise ValueError(f"Stroke samples must be [x, y] number pairs, got {sample!r}")
    x, y = float(sample[0]), float(sample[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise ValueError(f"Stroke samples must be finite, got {sample!r}")
    return x, y


class SignaturePad:
    """In-memory capture surface.

    Args:
        stroke_width: Pen width in pixels; also used as padding around
            the trimmed bounding box.
        color: RGBA pen colour.
    """

    def __init__(
        self,
        *,
        stroke_width: int = 3,
        color: tuple[int, int, int, int] = (0, 0, 0, 255),
    ) -> None:
        self._stroke_width = max(1, stroke_width)
        self._color = color
        self._strokes: list[Stroke] = []
        self.last_payload: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self._strokes

    @property
    def strokes(self) -> list[Stroke]:
        return [list(s) for s in self._strokes]

    def add_stroke(self, points: list[Point] | list[list[float]]) -> None:
        """Record one stroke. Strokes without samples are ignored.

        Raises:
            ValueError: A sample is not a finite ``[x, y]`` number pair.
        """
        if not isinstance(points, (list, tuple)):
            raise ValueError(f"A stroke must be a list of [x, y] samples, got {points!r}")
        stroke: Stroke = [_point(sample) for sample in points]
        if stroke:
            self._strokes.append(stroke)

    def clear(self) -> None:
        """Discard all strokes. ``last_payload`` is not touched."""
        self._strokes.clear()

    def save(self) -> str:
        """Rasterize the drawn region and return a PNG data URL.

        Raises:
            EmptySignatureError: No strokes since the last :meth:`clear`.
        """
        if not self._strokes:
            raise EmptySignatureError("Signature pad is empty")

        png = self._render_png()
        payload = PAYLOAD_PREFIX + base64.b64encode(png).decode("ascii")
        self.last_payload = payload
        return payload

    def _render_png(self) -> bytes:
        pad = self._stroke_width
        xs = [x for stroke in self._strokes for x, _ in stroke]
        ys = [y for stroke in self._strokes for _, y in stroke]
        left, top = min(xs), min(ys)
        width = int(round(max(xs) - left)) + 2 * pad + 1
        height = int(round(max(ys) - top)) + 2 * pad + 1

        img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(img)
        radius = self._stroke_width / 2
        for stroke in self._strokes:
            shifted = [(x - left + pad, y - top + pad) for x, y in stroke]
            if len(shifted) == 1:
                cx, cy = shifted[0]
                draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=self._color)
            else:
                draw.line(shifted, fill=self._color, width=self._stroke_width, joint="curve")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()


def load_strokes(path: Path) -> SignaturePad:
    """Build a pad from a JSON stroke file (``[[[x, y], ...], ...]``).

    Raises:
        ValueError: The file is not valid JSON or not a list of strokes of
            finite ``[x, y]`` pairs.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        msg = f"Stroke file {path} must contain a JSON list of strokes"
        raise ValueError(msg)
    pad = SignaturePad()
    for stroke in data:
        pad.add_stroke(stroke)
    return pad
