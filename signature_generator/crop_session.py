"""
Circular photo-crop session (Qt-free).

A ``CropSession`` owns the pan/zoom transform of one image inside the crop
viewport and turns the visible crop circle into a fixed-size RGBA raster.
Three coordinate spaces are involved:

* viewport space: pixels of the on-screen crop container;
* source space: natural pixels of the loaded image;
* output space: pixels of the ``output_size`` square raster.

The displayed image is ``base_width * zoom`` by ``base_height * zoom`` with
its top-left corner at ``(offset_x, offset_y)`` in viewport space, so one
display pixel is ``source_width / (base_width * zoom)`` source pixels.  All
arithmetic stays in floats until the final sampling step in ``commit``.

State machine::

    UNINITIALIZED -> READY <-> DRAGGING -> COMMITTED | CANCELLED

Failed calls raise and leave the session untouched.
"""

import logging
import math
from enum import Enum
from functools import lru_cache

from PIL import Image, ImageChops

from signature_generator.config import CIRCLE_DIAMETER, OUTPUT_SIZE
from signature_generator.errors import (
    InvalidImageError, InvalidZoomError, NoImageLoadedError, SessionAlreadyConsumedError,
)
from signature_generator.models import CropBox, centered_offset, contain_fit, is_valid_dimension

logger = logging.getLogger(__name__)


class CropState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


_TERMINAL_STATES = (CropState.COMMITTED, CropState.CANCELLED)


# =============================================================================
# Raster helpers
# =============================================================================
@lru_cache(maxsize=8)
def circle_mask(size: int) -> Image.Image:
    """Return an ``L`` mask for the circle inscribed in a ``size`` square.

    Alpha falls off over one pixel inside the edge; any pixel whose centre
    lies on or outside the circle is exactly 0.
    """
    radius = size / 2
    values = []
    for y in range(size):
        dy = y + 0.5 - radius
        for x in range(size):
            dx = x + 0.5 - radius
            coverage = radius - math.hypot(dx, dy)
            values.append(int(round(255 * max(0.0, min(1.0, coverage)))))
    mask = Image.new("L", (size, size), 0)
    mask.putdata(values)
    return mask


def sample_square(image: Image.Image, box: CropBox, output_size: int) -> Image.Image:
    """Resample a float source-space square into an ``output_size`` RGBA square.

    Areas of *box* outside the image come out fully transparent.  Large
    reductions are pre-shrunk with ``Image.reduce`` so the bilinear pass
    does not alias.
    """
    src = image.convert("RGBA")
    left, top, right, bottom = box.as_extent()

    factor = int(box.size / output_size)
    if factor >= 2:
        src = src.reduce(factor)
        left, top, right, bottom = (v / factor for v in (left, top, right, bottom))

    return src.transform(
        (output_size, output_size),
        Image.Transform.EXTENT,
        (left, top, right, bottom),
        resample=Image.Resampling.BILINEAR,
        fillcolor=(0, 0, 0, 0),
    )


def apply_circle_mask(square: Image.Image) -> Image.Image:
    """Make everything outside the inscribed circle transparent."""
    result = square.convert("RGBA")
    alpha = ImageChops.multiply(result.getchannel("A"), circle_mask(result.width))
    result.putalpha(alpha)
    return result


# =============================================================================
# Crop session
# =============================================================================
class CropSession:
    """Pan/zoom state of one photo in the circular crop viewport."""

    def __init__(self, output_size: int = OUTPUT_SIZE, clamp_pan: bool = False):
        if not isinstance(output_size, int) or output_size <= 0:
            raise ValueError(f"output_size must be a positive integer, got {output_size!r}")
        self.output_size = output_size
        # Off by default: the image may be dragged so the circle sees empty space
        self.clamp_pan = clamp_pan

        self.state = CropState.UNINITIALIZED
        self.source_width = 0
        self.source_height = 0
        self.viewport_width = 0.0
        self.viewport_height = 0.0
        self.circle_diameter = 0.0
        self.base_width = 0.0
        self.base_height = 0.0
        self.offset_x = 0.0
        self.offset_y = 0.0
        self.zoom = 1.0
        self.drag_anchor: tuple[float, float] | None = None
        self._image: Image.Image | None = None

    @classmethod
    def from_image(
        cls,
        image: Image.Image,
        viewport_width: float,
        viewport_height: float,
        circle_diameter: float = CIRCLE_DIAMETER,
        output_size: int = OUTPUT_SIZE,
        clamp_pan: bool = False,
    ) -> "CropSession":
        """Create a READY session for a decoded Pillow image."""
        session = cls(output_size=output_size, clamp_pan=clamp_pan)
        return session.initialize(
            image.width, image.height, viewport_width, viewport_height,
            circle_diameter, image=image,
        )

    # --- Lifecycle ---

    def initialize(
        self,
        source_width: float,
        source_height: float,
        viewport_width: float,
        viewport_height: float,
        circle_diameter: float = CIRCLE_DIAMETER,
        image: Image.Image | None = None,
    ) -> "CropSession":
        """Fit the image to the crop circle, center it and reset zoom to 1."""
        self._ensure_not_consumed()
        if not (is_valid_dimension(source_width) and is_valid_dimension(source_height)):
            raise InvalidImageError(
                f"Invalid image dimensions: {source_width!r}×{source_height!r}"
            )
        for name, value in (
            ("viewport_width", viewport_width),
            ("viewport_height", viewport_height),
            ("circle_diameter", circle_diameter),
        ):
            if not is_valid_dimension(value):
                raise InvalidImageError(f"{name} must be a positive finite number, got {value!r}")
        if image is not None and image.size != (source_width, source_height):
            raise InvalidImageError(
                f"Image is {image.width}×{image.height}, expected {source_width}×{source_height}"
            )

        self.source_width = source_width
        self.source_height = source_height
        self.viewport_width = float(viewport_width)
        self.viewport_height = float(viewport_height)
        self.circle_diameter = float(circle_diameter)
        self.base_width, self.base_height = contain_fit(source_width, source_height, circle_diameter)
        self.zoom = 1.0
        self.offset_x, self.offset_y = centered_offset(
            self.viewport_width, self.viewport_height, self.base_width, self.base_height,
        )
        self.drag_anchor = None
        self._image = image
        self.state = CropState.READY
        logger.debug(
            "Crop session: source %s×%s, base %.2f×%.2f, viewport %.0f×%.0f",
            source_width, source_height, self.base_width, self.base_height,
            self.viewport_width, self.viewport_height,
        )
        return self

    def cancel(self):
        """Discard the session.  Idempotent; a committed session stays committed."""
        if self.state in _TERMINAL_STATES:
            return
        self.drag_anchor = None
        self._image = None
        self.state = CropState.CANCELLED

    @property
    def is_dragging(self) -> bool:
        return self.state == CropState.DRAGGING

    @property
    def is_active(self) -> bool:
        return self.state in (CropState.READY, CropState.DRAGGING)

    # --- Derived geometry ---

    @property
    def display_width(self) -> float:
        return self.base_width * self.zoom

    @property
    def display_height(self) -> float:
        return self.base_height * self.zoom

    @property
    def scale_to_source(self) -> float:
        """Source pixels per displayed pixel at the current zoom."""
        return self.source_width / self.display_width

    def circle_rect(self) -> tuple[float, float, float, float]:
        """``(x, y, w, h)`` of the crop circle's bounding square in viewport space."""
        d = self.circle_diameter
        return (self.viewport_width / 2 - d / 2, self.viewport_height / 2 - d / 2, d, d)

    def viewport_to_source(self, x: float, y: float) -> tuple[float, float]:
        self._ensure_initialized()
        scale = self.scale_to_source
        return (x - self.offset_x) * scale, (y - self.offset_y) * scale

    def source_to_viewport(self, sx: float, sy: float) -> tuple[float, float]:
        self._ensure_initialized()
        scale = self.scale_to_source
        return sx / scale + self.offset_x, sy / scale + self.offset_y

    def source_box(self) -> CropBox:
        """Square source-space region currently seen by the crop circle."""
        self._ensure_initialized()
        scale = self.scale_to_source
        cx, cy, d, _ = self.circle_rect()
        return CropBox(
            left=(cx - self.offset_x) * scale,
            top=(cy - self.offset_y) * scale,
            size=d * scale,
        )

    # --- Pointer interaction ---

    def begin_drag(self, x: float, y: float):
        """Start (or restart) a drag at a viewport-local pointer position."""
        self._ensure_active()
        self.drag_anchor = (x - self.offset_x, y - self.offset_y)
        self.state = CropState.DRAGGING

    def update_drag(self, x: float, y: float):
        if not self.is_dragging:
            return
        ax, ay = self.drag_anchor
        self.offset_x, self.offset_y = self._constrain(x - ax, y - ay)

    def end_drag(self):
        if not self.is_dragging:
            return
        self.drag_anchor = None
        self.state = CropState.READY

    # --- Zoom ---

    def set_zoom(self, new_zoom: float):
        """Change the zoom while keeping the viewport-center point fixed in image space."""
        self._ensure_active()
        try:
            valid = math.isfinite(new_zoom) and new_zoom > 0
        except TypeError:
            valid = False
        if not valid:
            raise InvalidZoomError(f"Zoom must be a positive finite number, got {new_zoom!r}")

        # Image-space position under the viewport center is preserved:
        # (c - offset) / old_size == (c - new_offset) / new_size
        ratio = new_zoom / self.zoom
        cx = self.viewport_width / 2
        cy = self.viewport_height / 2
        old_x, old_y = self.offset_x, self.offset_y
        self.zoom = float(new_zoom)
        self.offset_x, self.offset_y = self._constrain(
            cx - (cx - old_x) * ratio,
            cy - (cy - old_y) * ratio,
        )

        # Keep an in-flight drag consistent with the new offset
        if self.is_dragging:
            ax, ay = self.drag_anchor
            self.drag_anchor = (ax + old_x - self.offset_x, ay + old_y - self.offset_y)

    # --- Output ---

    def commit(self, image: Image.Image | None = None) -> Image.Image:
        """Rasterize the crop circle into an ``output_size`` square RGBA image."""
        if self.state in _TERMINAL_STATES:
            raise SessionAlreadyConsumedError(f"Crop session already {self.state.value}")
        if self.state == CropState.UNINITIALIZED:
            raise NoImageLoadedError("No image loaded in the crop session")
        source = image if image is not None else self._image
        if source is None:
            raise NoImageLoadedError("No decoded image attached to the crop session")
        if source.size != (self.source_width, self.source_height):
            raise InvalidImageError(
                f"Image is {source.width}×{source.height}, "
                f"session expects {self.source_width}×{self.source_height}"
            )

        box = self.source_box()
        logger.debug(
            "Committing crop: box (%.2f, %.2f) size %.2f at zoom %.2f",
            box.left, box.top, box.size, self.zoom,
        )
        raster = apply_circle_mask(sample_square(source, box, self.output_size))

        self.drag_anchor = None
        self._image = None
        self.state = CropState.COMMITTED
        return raster

    # --- Internal ---

    def _constrain(self, x: float, y: float) -> tuple[float, float]:
        """Apply the pan policy; unclamped unless ``clamp_pan`` is set."""
        if not self.clamp_pan:
            return x, y
        cx, cy, d, _ = self.circle_rect()
        return (
            _clamp_axis(x, cx, d, self.display_width),
            _clamp_axis(y, cy, d, self.display_height),
        )

    def _ensure_not_consumed(self):
        if self.state in _TERMINAL_STATES:
            raise SessionAlreadyConsumedError(f"Crop session already {self.state.value}")

    def _ensure_initialized(self):
        if self.state == CropState.UNINITIALIZED:
            raise NoImageLoadedError("No image loaded in the crop session")

    def _ensure_active(self):
        self._ensure_not_consumed()
        self._ensure_initialized()


def _clamp_axis(offset: float, circle_start: float, diameter: float, size: float) -> float:
    """Keep the crop circle covered by the image along one axis."""
    lo = circle_start + diameter - size
    hi = circle_start
    if lo > hi:
        # Image smaller than the circle: center it on the circle instead
        return circle_start + (diameter - size) / 2
    return max(lo, min(offset, hi))
