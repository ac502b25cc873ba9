"""
YOLOv5 output post-processing: decode the raw anchor tensor, map boxes back to
the original image, and suppress duplicates with greedy NMS.

Core decode/NMS needs only NumPy. Letterboxing needs OpenCV; the ONNX backend
needs onnxruntime.
"""

from .types import Box, Detection
from .errors import InvalidConfig, InvalidTensorShape, InvalidThreshold, YoloKitError
from .geometry import iou
from .decode import decode, letterbox_params
from .nms import NMSConfig, nms, suppress
from .postprocess import YoloPostprocessor, YoloPostConfig
from .config import load_post_config, post_config_from_mapping
from .letterbox import letterbox
from .runtime import YoloPipeline, load_pipeline, resolve_path

__all__ = [
    "Box",
    "Detection",
    "YoloKitError",
    "InvalidTensorShape",
    "InvalidConfig",
    "InvalidThreshold",
    "iou",
    "decode",
    "letterbox_params",
    "NMSConfig",
    "nms",
    "suppress",
    "YoloPostprocessor",
    "YoloPostConfig",
    "load_post_config",
    "post_config_from_mapping",
    "letterbox",
    "YoloPipeline",
    "load_pipeline",
    "resolve_path",
]
