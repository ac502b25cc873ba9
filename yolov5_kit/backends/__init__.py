"""
Optional inference backends for yolov5_kit.

Backends live in their own subpackage so decode/NMS stay usable without an
inference runtime installed.
"""

from __future__ import annotations

__all__ = []
