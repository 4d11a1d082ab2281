"""
=============================================================================
MIDDLEWARE MODULE
=============================================================================

Middleware:                 base class for request/response interceptors
MiddlewarePipeline:         chains middleware around a final handler
StaticResponseMiddleware:   answers configured paths with inline content,
                            forwards everything else

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .static_response import StaticResponseMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "StaticResponseMiddleware",
]
