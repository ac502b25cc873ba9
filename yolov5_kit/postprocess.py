from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .decode import RawTensor, decode
from .errors import InvalidConfig, check_unit_interval
from .nms import check_max_results, suppress
from .types import Detection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YoloPostConfig:
    """
    Thresholds and sizes for YOLOv5 post-processing. Validated on construction.
    """

    # Anchors whose objectness is below this are skipped entirely.
    objectness_threshold: float = 0.2
    # Per-class filter on objectness * class score.
    class_confidence_threshold: float = 0.25
    # Higher allows more overlap before a box is suppressed.
    iou_threshold: float = 0.45
    max_results: int = 10
    # Model input (width, height).
    model_size: Tuple[int, int] = (640, 640)
    workers: int = 1
    parallel_min_anchors: int = 4096

    def __post_init__(self) -> None:
        check_unit_interval("objectness_threshold", self.objectness_threshold)
        check_unit_interval("class_confidence_threshold", self.class_confidence_threshold)
        check_unit_interval("iou_threshold", self.iou_threshold)
        check_max_results(self.max_results)
        if len(self.model_size) != 2 or any(
            isinstance(v, bool) or not isinstance(v, int) or v <= 0 for v in self.model_size
        ):
            raise InvalidConfig(f"model_size must be two positive integers, got {self.model_size!r}")
        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise InvalidConfig(f"workers must be an integer >= 1, got {self.workers!r}")
        if isinstance(self.parallel_min_anchors, bool) or not isinstance(self.parallel_min_anchors, int) or self.parallel_min_anchors < 0:
            raise InvalidConfig(f"parallel_min_anchors must be an integer >= 0, got {self.parallel_min_anchors!r}")


class YoloPostprocessor:
    """
    Post-process for YOLOv5-style exports, one image per call.

    Layout (per image): (A, 5 + C) or flat, [cx, cy, w, h, obj, class_scores...]
    in model input coordinates. Torch outputs must be detached and converted to
    NumPy first.
    """

    def __init__(self, cfg: YoloPostConfig):
        self.cfg = cfg

    def process(
        self,
        preds: RawTensor,
        image_size: Tuple[int, int],
        dimensions: Optional[int] = None,
        *,
        in_place: bool = False,
    ) -> List[Detection]:
        """
        Convert raw model output into suppressed detections in original image coordinates.

        Args:
            preds: model output for a single image
            image_size: (width, height) of the original image
            dimensions: values per anchor; taken from the last axis of `preds`
                when omitted
            in_place: let the decoder reuse `preds` as its score buffer
        """

        if dimensions is None:
            shape = getattr(preds, "shape", None)
            if not shape or len(shape) < 2:
                raise InvalidConfig("dimensions is required when preds is flat")
            dimensions = int(shape[-1])

        candidates = decode(
            preds,
            dimensions,
            image_size,
            self.cfg.model_size,
            self.cfg.objectness_threshold,
            self.cfg.class_confidence_threshold,
            in_place=in_place,
            workers=self.cfg.workers,
            parallel_min_anchors=self.cfg.parallel_min_anchors,
        )
        if not candidates:
            return []

        detections = suppress(candidates, self.cfg.iou_threshold, self.cfg.max_results)
        logger.debug("process: image %s, %d candidates -> %d detections", image_size, len(candidates), len(detections))
        return detections
