from .client import MonobankClient

__all__ = ["MonobankClient"]
