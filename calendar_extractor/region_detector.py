"""
Region Detector — Finds hand-marked (red) areas of a calendar photo.

Two strategies are available: a pixel-scanning flood fill over the raw RGBA
buffer ("canvas"), and an OpenCV HSV mask with contour detection ("opencv").
Both finish by merging overlapping boxes until no two boxes touch.
"""

import logging
from typing import Callable
import cv2
import numpy as np
from .models import PixelBuffer, Region

logger = logging.getLogger(__name__)

ColorPredicate = Callable[[int, int, int], bool]

RED_MIN_R = 150
RED_MAX_G = 100
RED_MAX_B = 100
DEFAULT_MIN_SIZE = 5
OPENCV_MIN_SIZE = 10
SCAN_STRIDE = 2

# Red wraps around both ends of the OpenCV hue range (0-180)
HSV_RED_BANDS = (
    ((0, 50, 30), (10, 255, 255)),
    ((170, 50, 30), (180, 255, 255)),
)


def is_red(r, g, b):
    return (r > RED_MIN_R) & (g < RED_MAX_G) & (b < RED_MAX_B)


def regions_touch(a: Region, b: Region) -> bool:
    """Closed-interval overlap test: boxes sharing only an edge count as touching."""
    return not (a.x2 < b.x or b.x2 < a.x or a.y2 < b.y or b.y2 < a.y)


def _union(a: Region, b: Region) -> Region:
    x1 = min(a.x, b.x)
    y1 = min(a.y, b.y)
    x2 = max(a.x2, b.x2)
    y2 = max(a.y2, b.y2)
    return Region(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


def merge_overlapping_regions(regions: list[Region]) -> list[Region]:
    """
    Merge touching or overlapping boxes into their union until a full pass
    makes no merge. A merged box can reach a third box that neither of its
    parts touched, so a single pass is not enough.
    """
    merged = list(regions)
    changed = True
    while changed:
        changed = False
        result: list[Region] = []
        for region in merged:
            current = region
            i = 0
            while i < len(result):
                if regions_touch(current, result[i]):
                    current = _union(current, result.pop(i))
                    changed = True
                    i = 0
                else:
                    i += 1
            result.append(current)
        merged = result
    return merged


def _marked_mask(buffer: PixelBuffer, is_marked: ColorPredicate) -> np.ndarray:
    r, g, b = buffer.channels()
    shape = (buffer.height, buffer.width)
    try:
        mask = np.asarray(is_marked(r, g, b), dtype=bool)
        if mask.shape == shape:
            return mask
    except (TypeError, ValueError):
        # predicate uses scalar-only logic such as `and`/`or`
        pass
    scalar = np.vectorize(lambda rv, gv, bv: bool(is_marked(int(rv), int(gv), int(bv))), otypes=[bool])
    return scalar(r, g, b).reshape(shape)


def _flood_fill(mask: np.ndarray, visited: np.ndarray, start_x: int, start_y: int) -> Region:
    """4-connected fill from a seed pixel, iterative so large blobs cannot exhaust the stack."""
    height, width = mask.shape
    stack = [(start_x, start_y)]
    min_x = max_x = start_x
    min_y = max_y = start_y
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        if visited[y, x] or not mask[y, x]:
            continue
        visited[y, x] = True
        min_x = min(min_x, x)
        max_x = max(max_x, x)
        min_y = min(min_y, y)
        max_y = max(max_y, y)
        stack.extend(((x - 1, y), (x + 1, y), (x, y - 1), (x, y + 1)))
    return Region(x=min_x, y=min_y, width=max_x - min_x + 1, height=max_y - min_y + 1)


def detect_regions(buffer: PixelBuffer, is_marked: ColorPredicate = is_red,
                   min_width: int = DEFAULT_MIN_SIZE, min_height: int = DEFAULT_MIN_SIZE,
                   stride: int = SCAN_STRIDE) -> list[Region]:
    """
    Find connected marked areas in an RGBA buffer.

    Seeds are sampled every `stride` pixels in each axis; each unvisited marked
    seed is flood filled at full resolution. Components not larger than
    `min_width` x `min_height` are treated as noise.

    Args:
        buffer: Image samples to scan.
        is_marked: Colour membership test called with (r, g, b).
        min_width: Components must be wider than this to be kept.
        min_height: Components must be taller than this to be kept.
        stride: Seed sampling step.

    Returns:
        Merged bounding boxes; empty when nothing is marked.
    """
    if stride < 1:
        raise ValueError(f"Scan stride must be >= 1, got {stride}")
    if buffer.width == 0 or buffer.height == 0:
        return []

    mask = _marked_mask(buffer, is_marked)
    visited = np.zeros_like(mask, dtype=bool)
    components = []
    dropped = 0

    seed_rows, seed_cols = np.nonzero(mask[::stride, ::stride])
    for row, col in zip(seed_rows, seed_cols):
        x, y = int(col) * stride, int(row) * stride
        if visited[y, x]:
            continue
        region = _flood_fill(mask, visited, x, y)
        if region.width > min_width and region.height > min_height:
            components.append(region)
        else:
            dropped += 1

    regions = merge_overlapping_regions(components)
    logger.debug(f"  Canvas scan: {len(components)} components, {dropped} noise, "
                 f"{len(regions)} after merge")
    return regions


def detect_regions_opencv(frame: np.ndarray, min_width: int = OPENCV_MIN_SIZE,
                          min_height: int = OPENCV_MIN_SIZE) -> list[Region]:
    """
    Detect red areas in a BGR or BGRA frame using an HSV mask and contours.
    More tolerant of shading and faded ink than the RGB threshold.
    """
    if frame.ndim == 3 and frame.shape[2] == 4:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGRA2BGR)
    hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)

    mask = np.zeros(hsv.shape[:2], dtype=np.uint8)
    for lower, upper in HSV_RED_BANDS:
        mask = cv2.bitwise_or(mask, cv2.inRange(hsv, np.array(lower), np.array(upper)))

    kernel = np.ones((3, 3), dtype=np.uint8)
    mask = cv2.morphologyEx(mask, cv2.MORPH_OPEN, kernel)
    mask = cv2.morphologyEx(mask, cv2.MORPH_CLOSE, kernel)
    contours, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    regions = []
    for contour in contours:
        x, y, w, h = cv2.boundingRect(contour)
        if w > min_width and h > min_height:
            regions.append(Region(x=int(x), y=int(y), width=int(w), height=int(h)))

    merged = merge_overlapping_regions(regions)
    logger.debug(f"  OpenCV scan: {len(contours)} contours, {len(regions)} kept, "
                 f"{len(merged)} after merge")
    return merged


def _buffer_to_bgr(buffer: PixelBuffer) -> np.ndarray:
    rgba = buffer.data.reshape(buffer.height, buffer.width, 4)
    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)


class CanvasStrategy:
    name = "canvas"
    label = "Canvas (Fast & Light)"
    min_size = DEFAULT_MIN_SIZE

    def detect(self, buffer: PixelBuffer, min_size: int | None = None) -> list[Region]:
        size = self.min_size if min_size is None else min_size
        return detect_regions(buffer, is_red, size, size)


class OpenCVStrategy:
    name = "opencv"
    label = "OpenCV (Robust)"
    min_size = OPENCV_MIN_SIZE

    def detect(self, buffer: PixelBuffer, min_size: int | None = None) -> list[Region]:
        size = self.min_size if min_size is None else min_size
        if buffer.width == 0 or buffer.height == 0:
            return []
        return detect_regions_opencv(_buffer_to_bgr(buffer), size, size)


_STRATEGIES = {
    CanvasStrategy.name: CanvasStrategy,
    OpenCVStrategy.name: OpenCVStrategy,
}


def get_strategy(name: str):
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown detection strategy: {name}") from None


def available_strategies() -> list[tuple[str, str]]:
    return [(name, cls.label) for name, cls in _STRATEGIES.items()]
