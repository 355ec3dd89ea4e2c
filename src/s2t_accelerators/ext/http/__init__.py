"""HTTP application: routes, origin policy and health."""

from .app import CORS_HEADERS, OriginMiddleware, create_app, is_origin_allowed

__all__ = ["CORS_HEADERS", "OriginMiddleware", "create_app", "is_origin_allowed"]
