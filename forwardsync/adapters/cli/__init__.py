"""
Command line adapter
"""
from .app import app, run

__all__ = ["app", "run"]
