"""
Freehand signature capture.

Drawing state is an explicit value threaded through `reduce`:

    Empty --down--> Drawing --move--> Drawing --up--> Captured | Empty
    Captured --down--> Drawing (keeps earlier strokes)
    any --clear--> Empty

The raster is always re-derived from the strokes, so resizing re-renders at
the new size instead of losing or stretching the signature.
"""
import base64
import io
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union
from PIL import Image, ImageDraw

logger = logging.getLogger(__name__)

PIXEL_RATIO = 2
STROKE_WIDTH = 2
STROKE_COLOR = (0, 0, 0, 255)


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    """Element bounding box in client coordinates."""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class MouseInput:
    client_x: float
    client_y: float


@dataclass(frozen=True)
class TouchInput:
    touches: tuple[tuple[float, float], ...]


PointerInput = Union[MouseInput, TouchInput]
Stroke = tuple[Point, ...]


def sample(event: PointerInput, bounds: Bounds) -> Point:
    """Map mouse or touch input to a point relative to the element's top-left corner."""
    if isinstance(event, TouchInput):
        client_x, client_y = event.touches[0]
    else:
        client_x, client_y = event.client_x, event.client_y
    return Point(client_x - bounds.left, client_y - bounds.top)


# States

@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Drawing:
    points: Stroke
    strokes: tuple[Stroke, ...] = ()


@dataclass(frozen=True)
class Captured:
    strokes: tuple[Stroke, ...]


CanvasState = Union[Empty, Drawing, Captured]


# Events

@dataclass(frozen=True)
class PointerDown:
    point: Point


@dataclass(frozen=True)
class PointerMove:
    point: Point


@dataclass(frozen=True)
class PointerUp:
    pass


@dataclass(frozen=True)
class Clear:
    pass


CanvasEvent = Union[PointerDown, PointerMove, PointerUp, Clear]


def _visible(points: Stroke) -> bool:
    # A press without movement draws nothing
    return len(points) > 1


def committed_strokes(state: CanvasState) -> tuple[Stroke, ...]:
    if isinstance(state, Drawing):
        if _visible(state.points):
            return state.strokes + (state.points,)
        return state.strokes
    if isinstance(state, Captured):
        return state.strokes
    return ()


def reduce(state: CanvasState, event: CanvasEvent) -> CanvasState:
    if isinstance(event, Clear):
        return Empty()

    if isinstance(event, PointerDown):
        return Drawing(points=(event.point,), strokes=committed_strokes(state))

    if isinstance(event, PointerMove):
        if isinstance(state, Drawing):
            return Drawing(points=state.points + (event.point,), strokes=state.strokes)
        return state

    if isinstance(event, PointerUp):
        if isinstance(state, Drawing):
            strokes = committed_strokes(state)
            return Captured(strokes) if strokes else Empty()
        return state

    raise TypeError(f"Unknown canvas event: {event!r}")


def has_content(state: CanvasState) -> bool:
    return bool(committed_strokes(state))


def render(strokes: tuple[Stroke, ...], width: float, height: float, ratio: int = PIXEL_RATIO) -> Image.Image:
    """Rasterize strokes (logical coordinates) into a transparent buffer `ratio` times larger."""
    size = (max(1, round(width * ratio)), max(1, round(height * ratio)))
    image = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    line_width = STROKE_WIDTH * ratio
    radius = line_width / 2

    for stroke in strokes:
        if not _visible(stroke):
            continue
        scaled = [(p.x * ratio, p.y * ratio) for p in stroke]
        draw.line(scaled, fill=STROKE_COLOR, width=line_width, joint="curve")
        # round caps
        for x, y in (scaled[0], scaled[-1]):
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=STROKE_COLOR)

    return image


def to_data_url(image: Image.Image) -> str:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


class SignatureCanvas:
    """
    Drawing surface reporting the signature to its owner.

    `on_signature_change` receives a PNG data URI after every completed stroke,
    or None when the canvas is empty (after clear, or a stroke that never moved).
    """

    def __init__(
        self,
        on_signature_change: Callable[[Optional[str]], None],
        bounds: Bounds = Bounds(0, 0, 600, 192),
        disabled: bool = False,
    ):
        self.on_signature_change = on_signature_change
        self.bounds = bounds
        self.disabled = disabled
        self.state: CanvasState = Empty()
        self.raster = render((), bounds.width, bounds.height)

    @property
    def is_empty(self) -> bool:
        return not has_content(self.state)

    @property
    def is_drawing(self) -> bool:
        return isinstance(self.state, Drawing)

    def _dispatch(self, event: CanvasEvent) -> None:
        self.state = reduce(self.state, event)
        self._redraw()

    def _redraw(self) -> None:
        self.raster = render(committed_strokes(self.state), self.bounds.width, self.bounds.height)

    def snapshot(self) -> Optional[str]:
        if self.is_empty:
            return None
        return to_data_url(self.raster)

    def resize(self, bounds: Bounds) -> None:
        self.bounds = bounds
        self._redraw()

    def start_drawing(self, event: PointerInput) -> None:
        if self.disabled:
            return
        self._dispatch(PointerDown(sample(event, self.bounds)))

    def draw(self, event: PointerInput) -> None:
        if self.disabled or not self.is_drawing:
            return
        self._dispatch(PointerMove(sample(event, self.bounds)))

    def stop_drawing(self) -> None:
        if self.disabled or not self.is_drawing:
            return
        self._dispatch(PointerUp())
        self.on_signature_change(self.snapshot())

    # mouse leaving the surface ends the stroke
    leave = stop_drawing

    def clear(self) -> None:
        if self.disabled:
            return
        self._dispatch(Clear())
        logger.debug("Signature cleared")
        self.on_signature_change(None)
