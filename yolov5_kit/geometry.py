from __future__ import annotations

import numpy as np

from .types import Box


def iou(box_a: Box, box_b: Box) -> float:
    """
    Intersection over union of two boxes, in [0, 1].

    Boxes with non-positive area never overlap anything, themselves included.
    """

    area_a = box_a.area
    if area_a <= 0:
        return 0.0
    area_b = box_b.area
    if area_b <= 0:
        return 0.0

    min_x = max(box_a.left, box_b.left)
    min_y = max(box_a.top, box_b.top)
    max_x = min(box_a.right, box_b.right)
    max_y = min(box_a.bottom, box_b.bottom)

    inter = max(max_y - min_y, 0.0) * max(max_x - min_x, 0.0)
    return float(inter / (area_a + area_b - inter))


def iou_one_to_many(
    ref: int,
    x1: np.ndarray,
    y1: np.ndarray,
    x2: np.ndarray,
    y2: np.ndarray,
    areas: np.ndarray,
    others: np.ndarray,
) -> np.ndarray:
    """
    IoU of box `ref` against the boxes at indices `others`, same rules as `iou()`.

    Coordinates are column arrays (xyxy) and `areas` is precomputed so the
    values match the scalar version bit for bit.
    """

    if others.size == 0:
        return np.empty((0,), dtype=np.float64)
    if areas[ref] <= 0:
        return np.zeros((others.size,), dtype=np.float64)

    xx1 = np.maximum(x1[ref], x1[others])
    yy1 = np.maximum(y1[ref], y1[others])
    xx2 = np.minimum(x2[ref], x2[others])
    yy2 = np.minimum(y2[ref], y2[others])

    h = np.maximum(yy2 - yy1, 0.0)
    w = np.maximum(xx2 - xx1, 0.0)
    inter = h * w
    other_areas = areas[others]
    union = areas[ref] + other_areas - inter

    out = np.zeros((others.size,), dtype=np.float64)
    valid = other_areas > 0
    np.divide(inter, union, out=out, where=valid)
    return out
