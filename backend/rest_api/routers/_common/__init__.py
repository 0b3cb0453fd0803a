"""
Common utilities shared across routers.
"""

from .roles import (
    require_admin,
    require_admin_write,
    require_delivery,
    require_delivery_write,
    require_editor_write,
    require_field_write,
    require_super_admin,
    require_tenant_user,
    require_vendor,
    require_vendor_write,
)

__all__ = [
    "require_admin",
    "require_admin_write",
    "require_delivery",
    "require_delivery_write",
    "require_editor_write",
    "require_field_write",
    "require_super_admin",
    "require_tenant_user",
    "require_vendor",
    "require_vendor_write",
]
