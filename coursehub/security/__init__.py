from .rbac import Identity, get_current_identity, require_admin

__all__ = ["Identity", "get_current_identity", "require_admin"]
