from typing import Tuple

import numpy as np


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (640, 640),
    color: Tuple[int, int, int] = (114, 114, 114),
):
    """
    Aspect-preserving resize into `new_shape` (width, height), padded evenly on
    both sides. The gain is always min(new_w / w, new_h / h), upscaling included.

    The returned `pad` is the unrounded (new - size * gain) / 2 the decoder uses
    to map boxes back. The image itself is resized and bordered in whole pixels,
    so that inversion is exact only to within the rounding (under one pixel).

    Returns:
        padded: resized + padded image of exactly `new_shape`
        gain: uniform scale applied to the image
        pad: (dw, dh) padding applied to the left/top edge
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)

    h, w = image.shape[:2]
    new_w, new_h = new_shape
    gain = min(new_w / w, new_h / h)

    resized_w = min(new_w, int(round(w * gain)))
    resized_h = min(new_h, int(round(h * gain)))
    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    # Odd leftovers go to the right/bottom edge.
    left = (new_w - resized_w) // 2
    top = (new_h - resized_h) // 2
    right = new_w - resized_w - left
    bottom = new_h - resized_h - top
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    return padded, gain, ((new_w - w * gain) / 2, (new_h - h * gain) / 2)
