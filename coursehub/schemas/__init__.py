from .common import ok

__all__ = ["ok"]
