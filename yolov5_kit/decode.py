from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidConfig, InvalidTensorShape, check_unit_interval
from .types import Box, Detection

logger = logging.getLogger(__name__)

# [cx, cy, w, h, objectness] precede the class scores in every anchor row.
BOX_FIELDS = 5

RawTensor = Union[np.ndarray, Sequence[float]]


def letterbox_params(image_size: Tuple[int, int], model_size: Tuple[int, int]) -> Tuple[float, Tuple[float, float]]:
    """
    Gain and (x, y) padding of the aspect-preserving resize that maps an
    `image_size` (width, height) picture into a `model_size` input.
    """

    image_w, image_h = image_size
    model_w, model_h = model_size
    for name, value in (("image width", image_w), ("image height", image_h), ("model width", model_w), ("model height", model_h)):
        if isinstance(value, bool) or not isinstance(value, (int, float, np.integer, np.floating)) or not value > 0:
            raise InvalidConfig(f"{name} must be > 0, got {value!r}")

    gain = min(model_w / image_w, model_h / image_h)
    x_pad = (model_w - image_w * gain) / 2
    y_pad = (model_h - image_h * gain) / 2
    return float(gain), (float(x_pad), float(y_pad))


def _anchor_rows(raw: RawTensor, dimensions: int) -> np.ndarray:
    """
    View the raw output as (num_anchors, dimensions).

    Accepts a flat sequence, (N,), (A, D) or a single-image batch (1, A, D).
    """

    if isinstance(dimensions, bool) or not isinstance(dimensions, (int, np.integer)):
        raise InvalidTensorShape(f"dimensions must be an integer, got {dimensions!r}")
    if dimensions < BOX_FIELDS:
        raise InvalidTensorShape(f"dimensions must be >= {BOX_FIELDS} (4 box values + objectness), got {dimensions}")

    p = raw if isinstance(raw, np.ndarray) else np.asarray(raw, dtype=np.float64)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise InvalidTensorShape(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]

    if p.ndim == 2:
        if p.shape[1] != dimensions:
            raise InvalidTensorShape(f"Expected {dimensions} values per anchor, got shape {p.shape}")
    elif p.ndim == 1:
        if p.size % dimensions != 0:
            raise InvalidTensorShape(f"Tensor length {p.size} is not a multiple of dimensions={dimensions}")
    else:
        raise InvalidTensorShape(f"Unsupported YOLO output shape: {p.shape}")

    if not (np.issubdtype(p.dtype, np.integer) or np.issubdtype(p.dtype, np.floating)):
        raise InvalidTensorShape(f"Expected an integer or float tensor, got dtype {p.dtype}")
    return p.reshape(-1, dimensions)


def _decode_range(
    rows: np.ndarray,
    start: int,
    stop: int,
    gain: float,
    pad: Tuple[float, float],
    objectness_threshold: float,
    class_confidence_threshold: float,
    in_place: bool,
) -> List[Detection]:
    chunk = rows[start:stop]

    # Whole anchors below objectness are dropped before any per-class work.
    alive = np.flatnonzero(chunk[:, 4] >= objectness_threshold)
    if alive.size == 0:
        return []

    picked = chunk[alive]
    combined = picked[:, BOX_FIELDS:] * picked[:, 4:5]
    if in_place:
        chunk[alive, BOX_FIELDS:] = combined

    # Multi-label: every class that clears the threshold is emitted.
    anchor_idx, class_idx = np.nonzero(combined >= class_confidence_threshold)
    if anchor_idx.size == 0:
        return []

    coords = picked[anchor_idx, :4].astype(np.float64)
    cx, cy, w, h = coords[:, 0], coords[:, 1], coords[:, 2], coords[:, 3]
    x_pad, y_pad = pad
    top_left_x = ((cx - w / 2) - x_pad) / gain
    top_left_y = ((cy - h / 2) - y_pad) / gain
    bottom_right_x = ((cx + w / 2) - x_pad) / gain
    bottom_right_y = ((cy + h / 2) - y_pad) / gain
    scores = combined[anchor_idx, class_idx]

    return [
        Detection(
            box=Box.from_corners(float(x1), float(y1), float(x2), float(y2)),
            confidence=float(score),
            class_index=int(cls_id),
        )
        for x1, y1, x2, y2, score, cls_id in zip(
            top_left_x, top_left_y, bottom_right_x, bottom_right_y, scores, class_idx
        )
    ]


def decode(
    raw: RawTensor,
    dimensions: int,
    image_size: Tuple[int, int],
    model_size: Tuple[int, int] = (640, 640),
    objectness_threshold: float = 0.2,
    class_confidence_threshold: float = 0.25,
    *,
    in_place: bool = False,
    workers: int = 1,
    parallel_min_anchors: int = 4096,
) -> List[Detection]:
    """
    Turn a raw YOLOv5 output into candidate detections in original-image coordinates.

    Args:
        raw: flat output (or (A, D) / (1, A, D) array), per anchor
            [cx, cy, w, h, objectness, class_scores...] in model space
        dimensions: values per anchor, num_classes + 5
        image_size: (width, height) of the original image
        model_size: (width, height) of the model input
        objectness_threshold: anchors below this are skipped entirely
        class_confidence_threshold: (anchor, class) pairs whose
            objectness * class score is below this are skipped
        in_place: overwrite class scores of surviving anchors in `raw` with the
            combined scores (only when `raw` is a writable float array)
        workers: decode threads; used only when the anchor count reaches
            `parallel_min_anchors`

    Returns detections in anchor-major order. Callers should not rely on it.
    """

    objectness_threshold = check_unit_interval("objectness_threshold", objectness_threshold)
    class_confidence_threshold = check_unit_interval("class_confidence_threshold", class_confidence_threshold)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise InvalidConfig(f"workers must be an integer >= 1, got {workers!r}")
    gain, pad = letterbox_params(image_size, model_size)
    rows = _anchor_rows(raw, dimensions)

    writable = (
        in_place
        and np.issubdtype(rows.dtype, np.floating)
        and rows.flags.writeable
        and isinstance(raw, np.ndarray)
        and np.may_share_memory(rows, raw)
    )

    num_anchors = rows.shape[0]
    if workers == 1 or num_anchors == 0 or num_anchors < parallel_min_anchors:
        detections = _decode_range(
            rows, 0, num_anchors, gain, pad, objectness_threshold, class_confidence_threshold, writable
        )
    else:
        step = -(-num_anchors // workers)
        bounds = [(s, min(s + step, num_anchors)) for s in range(0, num_anchors, step)]
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="yolo_decode") as executor:
            futures = [
                executor.submit(
                    _decode_range,
                    rows,
                    start,
                    stop,
                    gain,
                    pad,
                    objectness_threshold,
                    class_confidence_threshold,
                    writable,
                )
                for start, stop in bounds
            ]
            detections = [det for fut in futures for det in fut.result()]

    logger.debug(
        "decode: %d anchors, %d classes -> %d candidates (gain=%.4f, pad=%s)",
        num_anchors,
        dimensions - BOX_FIELDS,
        len(detections),
        gain,
        pad,
    )
    return detections
