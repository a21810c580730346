"""
Food donation backend package.

Exposes the identity store and donation ledger behind a FastAPI app. The app
instance is importable as src.api.app.
"""

# Expose FastAPI app at package level (optional import path: src.api.app)
try:
    from .main import app  # noqa: F401
except ImportError:
    # During certain tooling operations (e.g., static analysis) the import
    # path may not be resolvable.
    pass
