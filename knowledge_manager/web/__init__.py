"""HTTP boundary for the Knowledge Assistant."""

from .routes import WebRoutes

__all__ = ["WebRoutes"]
