"""
Adapters: configuration, front end controller and CLI
"""
from .frontend import Frontend

__all__ = ["Frontend"]
