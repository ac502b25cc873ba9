from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .errors import InvalidConfig, check_unit_interval
from .geometry import iou_one_to_many
from .types import Detection

logger = logging.getLogger(__name__)


def check_max_results(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidConfig(f"max_results must be an integer, got {value!r}")
    if value < 0:
        raise InvalidConfig(f"max_results must be >= 0, got {value}")
    return int(value)


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    max_detections: int = 10

    def __post_init__(self) -> None:
        check_unit_interval("iou_threshold", self.iou_threshold)
        check_max_results(self.max_detections)


def _greedy_keep(
    x1: np.ndarray,
    y1: np.ndarray,
    x2: np.ndarray,
    y2: np.ndarray,
    areas: np.ndarray,
    scores: np.ndarray,
    iou_threshold: float,
    max_keep: int,
) -> List[int]:
    n = scores.shape[0]
    if n == 0 or max_keep == 0:
        return []

    # Stable descending sort: equal scores keep their input order.
    order = np.argsort(-scores, kind="stable")
    active = np.ones((n,), dtype=bool)
    keep: List[int] = []

    for pos in range(n):
        if not active[pos]:
            continue
        i = int(order[pos])
        keep.append(i)
        if len(keep) >= max_keep:
            break

        rest = pos + 1 + np.flatnonzero(active[pos + 1 :])
        if rest.size == 0:
            break
        overlaps = iou_one_to_many(i, x1, y1, x2, y2, areas, order[rest])
        active[rest[overlaps > iou_threshold]] = False

    return keep


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Class-agnostic greedy NMS over NumPy arrays.

    Expects boxes shape (N, 4) in xyxy and scores shape (N,). Returns indices of
    kept boxes in descending-score order, at most `cfg.max_detections` of them.
    """

    boxes = np.asarray(boxes, dtype=np.float64)
    scores = np.asarray(scores, dtype=np.float64)
    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)
    if boxes.ndim != 2 or boxes.shape[1] != 4:
        raise ValueError(f"Expected boxes of shape (N, 4), got {boxes.shape}")
    if scores.shape != (boxes.shape[0],):
        raise ValueError(f"Expected scores of shape ({boxes.shape[0]},), got {scores.shape}")

    x1, y1, x2, y2 = (boxes[:, k] for k in range(4))
    areas = (x2 - x1) * (y2 - y1)
    keep = _greedy_keep(x1, y1, x2, y2, areas, scores, cfg.iou_threshold, cfg.max_detections)
    return np.array(keep, dtype=np.int64)


def suppress(detections: Sequence[Detection], iou_threshold: float, max_results: int) -> List[Detection]:
    """
    Remove overlapping duplicates, keeping the most confident box of each cluster.

    Suppression is applied across all classes jointly: a box of one class can
    suppress an overlapping box of another. The result is ordered by descending
    confidence (ties keep input order) and holds at most `max_results` items.
    """

    iou_threshold = check_unit_interval("iou_threshold", iou_threshold)
    max_results = check_max_results(max_results)

    if not detections:
        return []

    boxes = [det.box for det in detections]
    x1 = np.array([b.left for b in boxes], dtype=np.float64)
    y1 = np.array([b.top for b in boxes], dtype=np.float64)
    x2 = np.array([b.right for b in boxes], dtype=np.float64)
    y2 = np.array([b.bottom for b in boxes], dtype=np.float64)
    areas = np.array([b.area for b in boxes], dtype=np.float64)
    scores = np.array([det.confidence for det in detections], dtype=np.float64)

    keep = _greedy_keep(x1, y1, x2, y2, areas, scores, iou_threshold, max_results)
    logger.debug("suppress: %d candidates -> %d kept (iou>%.3f, max=%d)", len(detections), len(keep), iou_threshold, max_results)
    return [detections[i] for i in keep]
