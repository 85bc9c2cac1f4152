from .base import BaseClient
from .stat import Exchange, RedirectState, StatClient, is_redirect

__all__ = [
    "BaseClient",
    "StatClient",
    "Exchange",
    "RedirectState",
    "is_redirect",
]
