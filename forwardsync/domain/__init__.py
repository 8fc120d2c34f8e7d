"""
Domain layer: alias tables, targets and the sync protocol
"""
from .models import AliasTable, AuthStatus, Credentials, TableStatus, Target

__all__ = [
    "AliasTable",
    "AuthStatus",
    "Credentials",
    "TableStatus",
    "Target",
]
