"""
Viewer interaction rules: zoom, swipe navigation, scrollbar seeking,
ambient drift scrolling and masonry placement.

Everything here is plain state and arithmetic so a front end (or a test) can
feed in pointer events and timestamps and read back what to render. Times are
in seconds, distances in pixels.
"""
import math
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

DOUBLE_TAP_WINDOW = 0.3
ZOOMED_SCALE = 2.5
MIN_SCALE = 1.0
MAX_SCALE = 5.0
SNAP_SCALE = 1.01

VERTICAL_SWIPE_DISTANCE = 60
HORIZONTAL_SWIPE_DISTANCE = 80
HORIZONTAL_SWIPE_VELOCITY = 250
PIXELS_PER_STEP = 120
VELOCITY_PER_STEP = 700

DRIFT_DURATION = 15.0
DRIFT_FRACTION = 0.3
DRIFT_RESUME_AFTER = 5.0
DRIFT_START_DELAY = 0.5

MASONRY_COLUMNS = 3
MASONRY_GAP = 6
MASONRY_BASE_SIZE = 100


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def ease_in_out_cubic(t: float) -> float:
    """Cubic ease-in-out on [0, 1]."""
    t = clamp(t, 0.0, 1.0)
    if t < 0.5:
        return 4 * t * t * t
    return 1 - math.pow(-2 * t + 2, 3) / 2


def clamp_pan(offset: float, scale: float, size: float) -> float:
    """Keep a zoomed image edge inside the viewport on one axis."""
    limit = (scale - 1) * size / 2
    return clamp(offset, -limit, limit)


@dataclass
class ZoomState:
    """Zoom and pan of the photo shown in the full-screen viewer."""
    scale: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    last_tap: Optional[float] = None
    pinching: bool = False
    _pinch_start_scale: float = 1.0
    _pinch_start_distance: float = 0.0

    def reset(self) -> None:
        self.scale = 1.0
        self.pan_x = self.pan_y = 0.0

    def tap(self, now: float) -> bool:
        """Register a tap; returns True when it completed a double tap."""
        is_double = self.last_tap is not None and now - self.last_tap < DOUBLE_TAP_WINDOW
        if is_double:
            if self.scale > 1:
                self.reset()
            else:
                self.scale = ZOOMED_SCALE
        self.last_tap = now
        return is_double

    def start_pinch(self, distance: float) -> None:
        self.pinching = True
        self._pinch_start_distance = distance
        self._pinch_start_scale = self.scale

    def update_pinch(self, distance: float) -> None:
        if not self.pinching or self._pinch_start_distance <= 0:
            return
        raw = self._pinch_start_scale * distance / self._pinch_start_distance
        scale = clamp(raw, MIN_SCALE, MAX_SCALE)
        if scale <= SNAP_SCALE:
            self.reset()
        else:
            self.scale = scale

    def end_touch(self, now: float, touches_left: int = 0) -> bool:
        """
        Finish a touch. A touch that ended a pinch clears the tap history
        instead of counting as a tap.
        """
        if self.pinching:
            if touches_left == 0:
                self.pinching = False
            self.last_tap = None
            return False
        return self.tap(now)

    def pan_by(self, dx: float, dy: float) -> None:
        if self.scale > 1:
            self.pan_x += dx
            self.pan_y += dy

    def settle_pan(self, width: float, height: float) -> None:
        """Clamp the pan after a drag ends."""
        self.pan_x = clamp_pan(self.pan_x, self.scale, width)
        self.pan_y = clamp_pan(self.pan_y, self.scale, height)


def swipe_steps(dx: float, dy: float, vx: float) -> int:
    """
    Signed number of photos a finished swipe moves by (0 for no move).

    Positive means next. A vertical swipe moves one photo (up is next); a
    horizontal fling moves further the longer and faster it is.
    """
    if abs(dy) > abs(dx) and abs(dy) > VERTICAL_SWIPE_DISTANCE:
        return 1 if dy < 0 else -1
    if abs(vx) > HORIZONTAL_SWIPE_VELOCITY or abs(dx) > HORIZONTAL_SWIPE_DISTANCE:
        steps = round_half_up(abs(dx) / PIXELS_PER_STEP) + round_half_up(abs(vx) / VELOCITY_PER_STEP)
        steps = max(steps, 1)
        return -steps if dx > 0 else steps
    return 0


def swipe_target(index: int, count: int, dx: float, dy: float, vx: float, scale: float = 1.0) -> int:
    """Photo index after a swipe; swipes are ignored while zoomed."""
    if count <= 0:
        return 0
    if scale > 1:
        return index
    return int(clamp(index + swipe_steps(dx, dy, vx), 0, count - 1))


def seek_ratio(pointer: float, track_start: float, track_length: float) -> float:
    if track_length <= 0:
        return 0.0
    return clamp((pointer - track_start) / track_length, 0.0, 1.0)


def seek_index(pointer: float, track_start: float, track_length: float, count: int) -> int:
    """Photo index under a pointer on the scrollbar track."""
    if count <= 0:
        return 0
    return round_half_up(seek_ratio(pointer, track_start, track_length) * (count - 1))


class DriftScheduler:
    """
    Slow automatic scrolling of the album grid.

    Each cycle moves 30% of the scrollable height over 15 s and wraps to the
    top past the end. Touching stops drift at once; it resumes 5 s after the
    last touch ends, plus the usual start delay.
    """

    def __init__(
        self,
        scrollable_height: float,
        clock: Callable[[], float] = time.monotonic,
        offset: float = 0.0,
    ):
        self.scrollable_height = scrollable_height
        self.clock = clock
        self._base = offset
        self._interacting = False
        self._start_at = clock() + DRIFT_START_DELAY

    @property
    def drifting(self) -> bool:
        return not self._interacting and self.clock() >= self._start_at

    def _wrap(self, offset: float) -> float:
        if self.scrollable_height <= 0:
            return 0.0
        while offset >= self.scrollable_height:
            offset -= self.scrollable_height
        return offset

    def offset(self) -> float:
        """Scroll offset to render now."""
        if not self.drifting:
            return self._wrap(self._base)
        elapsed = self.clock() - self._start_at
        cycles, progress = divmod(elapsed / DRIFT_DURATION, 1.0)
        distance = self.scrollable_height * DRIFT_FRACTION
        return self._wrap(self._base + distance * (cycles + ease_in_out_cubic(progress)))

    def touch(self) -> None:
        """User started scrolling or dragging: freeze where we are."""
        self._base = self.offset()
        self._interacting = True

    def scroll_to(self, offset: float) -> None:
        self._base = clamp(offset, 0.0, max(self.scrollable_height, 0.0))

    def release(self) -> None:
        """Interaction ended: schedule the next drift."""
        self._interacting = False
        self._start_at = self.clock() + DRIFT_RESUME_AFTER + DRIFT_START_DELAY


def tile_size(photo_id: str) -> float:
    """Stable pseudo-random tile scale in [0.5, 1.3) derived from the photo id."""
    h = 0
    for ch in photo_id:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return 0.5 + (abs(h) % 80) / 100


@dataclass
class Tile:
    index: int
    top: float
    height: float


@dataclass
class Column:
    height: float = 0.0
    tiles: List[Tile] = field(default_factory=list)


def masonry_layout(
    heights: Sequence[float],
    columns: int = MASONRY_COLUMNS,
    gap: float = MASONRY_GAP,
) -> List[Column]:
    """Place tiles in order, each into the currently shortest column (leftmost on ties)."""
    layout = [Column() for _ in range(columns)]
    for index, height in enumerate(heights):
        column = min(layout, key=lambda c: c.height)
        column.tiles.append(Tile(index=index, top=column.height, height=height))
        column.height += height + gap
    return layout


def grid_layout(photo_ids: Sequence[str]) -> List[Column]:
    """Masonry layout of an album grid using per-photo tile sizes."""
    return masonry_layout([MASONRY_BASE_SIZE * tile_size(pid) for pid in photo_ids])


def total_height(layout: Sequence[Column]) -> float:
    return max((c.height for c in layout), default=0.0)
