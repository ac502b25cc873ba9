from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    - providers: ORT execution providers in priority order, e.g.
      ["CUDAExecutionProvider", "CPUExecutionProvider"]; None lets ORT choose
    - input_name/output_name: override the first model input/output
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime session for a YOLOv5 export.

    `infer` takes the NCHW float32 blob (1, 3, H, W) and returns the raw
    output, typically (1, A, num_classes + 5).
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), providers=providers)

        model_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or model_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        self.input_shape = tuple(model_input.shape)
        logger.info(
            "Loaded %s (input=%s %s, output=%s) on %s",
            self.model_path.name,
            self.input_name,
            self.input_shape,
            self.output_name,
            ", ".join(self.session.get_providers()),
        )

    @property
    def model_size(self) -> Optional[Tuple[int, int]]:
        """(width, height) from a static NCHW input, None when the axes are dynamic."""
        if len(self.input_shape) != 4:
            return None
        h, w = self.input_shape[2], self.input_shape[3]
        if not isinstance(h, int) or not isinstance(w, int):
            return None
        return w, h

    def infer(self, blob: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]
