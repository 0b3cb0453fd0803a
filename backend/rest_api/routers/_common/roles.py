"""
Role dependencies shared by the routers.

Read dependencies only authenticate and check the role; the *_write variants
also run the subscription write-guard.
"""

from shared.config.constants import Roles
from shared.security.auth import roles_required
from rest_api.services.subscription_guard import write_roles


require_admin = roles_required(Roles.ADMIN)
require_vendor = roles_required(Roles.VENDOR)
require_delivery = roles_required(Roles.DELIVERY)
require_tenant_user = roles_required(Roles.ADMIN, Roles.VENDOR, Roles.DELIVERY)
require_super_admin = roles_required(Roles.SUPER_ADMIN)

require_admin_write = write_roles(Roles.ADMIN)
require_vendor_write = write_roles(Roles.VENDOR)
require_delivery_write = write_roles(Roles.DELIVERY)
require_editor_write = write_roles(Roles.ADMIN, Roles.VENDOR)
require_field_write = write_roles(Roles.VENDOR, Roles.DELIVERY)
