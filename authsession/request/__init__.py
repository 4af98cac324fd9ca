"""
Request pipeline with transparent token refresh.
"""

from .pipeline import RequestPipeline, RequestState

__all__ = ["RequestPipeline", "RequestState"]
