"""
UI package for the match ledger engine.

This package contains the Flask JSON API used by the sideline app.
"""
from .web_app import create_app, run_web_app

__all__ = ["create_app", "run_web_app"]
