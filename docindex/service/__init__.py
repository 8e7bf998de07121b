"""HTTP service exposing docindex status, planning and index operations."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
