from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .letterbox import letterbox
from .postprocess import YoloPostConfig, YoloPostprocessor
from .types import Detection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def resolve_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`
    (or the current directory).
    """

    p = Path(path)
    if p.is_absolute():
        return p
    base = Path(root).resolve() if root is not None else Path.cwd()
    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    image_size: Tuple[int, int]
    gain: float
    pad: Tuple[float, float]


class YoloPipeline:
    """
    Preprocess (letterbox) -> inference -> decode + NMS for one image.

    Expects BGR images (OpenCV-style) as `np.ndarray` and returns `Detection`s
    in original image coordinates, most confident first.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        backend: Optional[object] = None,
        post_cfg: YoloPostConfig = YoloPostConfig(),
        pad_color: Tuple[int, int, int] = (114, 114, 114),
    ):
        self._infer_fn = infer_fn
        self.backend = backend
        self.pad_color = pad_color
        self.post = YoloPostprocessor(post_cfg)

    @property
    def model_size(self) -> Tuple[int, int]:
        return self.post.cfg.model_size

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        orig_h, orig_w = image_bgr.shape[:2]
        img, gain, pad = letterbox(image_bgr, new_shape=self.model_size, color=self.pad_color)

        # BGR -> RGB, scale to [0, 1], HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, image_size=(orig_w, orig_h), gain=gain, pad=pad)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_bgr)
        logger.debug("preprocess: %s -> %s, gain=%.4f, pad=%s", prep.image_size, self.model_size, prep.gain, prep.pad)
        preds = self._infer_fn(prep.blob)
        # The output buffer belongs to this call, so the decoder may reuse it.
        return self.post.process(np.asarray(preds), image_size=prep.image_size, in_place=True)


def load_pipeline(
    model_path: PathLike,
    *,
    root: Optional[PathLike] = None,
    post_cfg: YoloPostConfig = YoloPostConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
) -> YoloPipeline:
    """
    Build a pipeline for a YOLOv5 ONNX export on disk.

        pipe = load_pipeline("models/yolov5s.onnx", post_cfg=YoloPostConfig(max_results=20))
        detections = pipe(cv2.imread("bus.jpg"))
    """

    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got '{resolved.suffix}'")

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    ort_backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=onnx_input_name,
            output_name=onnx_output_name,
        ),
    )
    if ort_backend.model_size is not None and ort_backend.model_size != post_cfg.model_size:
        logger.warning(
            "Model input is %s but post_cfg.model_size is %s; boxes will be mapped with the config value",
            ort_backend.model_size,
            post_cfg.model_size,
        )
    return YoloPipeline(ort_backend.infer, backend=ort_backend, post_cfg=post_cfg)
