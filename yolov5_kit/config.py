from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from .errors import InvalidConfig
from .postprocess import YoloPostConfig

PathLike = Union[str, Path]

_FLOAT_KEYS = ("objectness_threshold", "class_confidence_threshold", "iou_threshold")
_INT_KEYS = ("max_results", "workers", "parallel_min_anchors")


def _require_number(payload: Mapping[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfig(f"{key} must be a number")
    return float(value)


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"{key} must be an integer")
    return int(value)


def post_config_from_mapping(payload: Mapping[str, Any]) -> YoloPostConfig:
    if not isinstance(payload, Mapping):
        raise InvalidConfig("Post-process config must be a JSON object")

    allowed = set(_FLOAT_KEYS) | set(_INT_KEYS) | {"model_size"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise InvalidConfig(f"Unknown post-process config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key in _FLOAT_KEYS:
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in _INT_KEYS:
        if key in payload:
            kwargs[key] = _require_int(payload, key)

    if "model_size" in payload:
        size = payload["model_size"]
        if isinstance(size, int) and not isinstance(size, bool):
            size = [size, size]
        if (
            not isinstance(size, (list, tuple))
            or len(size) != 2
            or any(isinstance(v, bool) or not isinstance(v, int) for v in size)
        ):
            raise InvalidConfig("model_size must be an integer or a [width, height] list of integers")
        kwargs["model_size"] = (int(size[0]), int(size[1]))

    return YoloPostConfig(**kwargs)


def load_post_config(path: PathLike) -> YoloPostConfig:
    """
    Load a `YoloPostConfig` from a JSON file, e.g.

        {"objectness_threshold": 0.2, "iou_threshold": 0.5, "model_size": [640, 640]}

    Missing keys keep their defaults; thresholds are checked here, not per call.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Post-process config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidConfig(f"Invalid post-process config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise InvalidConfig("Post-process config must be a JSON object")
    return post_config_from_mapping(payload)
