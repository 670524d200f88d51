"""
Inference backends for plantid_kit.

Kept apart from the core so pre/post-processing can be used without an
inference runtime installed.
"""

from __future__ import annotations

from .onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

__all__ = ["OnnxRuntimeBackend", "OnnxRuntimeBackendConfig"]
