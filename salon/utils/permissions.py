"""Permission catalogue, role templates and the route guard that checks them.

Permissions are ``resource:action`` strings stored on a role. ``*`` grants
everything and ``resource:manage`` grants every action on that resource.
"""

from functools import wraps
from flask_login import current_user
from salon.utils.errors import Unauthorized

ALL = '*'

USERS_CREATE = 'users:create'
USERS_READ = 'users:read'
USERS_UPDATE = 'users:update'
USERS_DELETE = 'users:delete'
USERS_MANAGE = 'users:manage'

ROLES_CREATE = 'roles:create'
ROLES_READ = 'roles:read'
ROLES_UPDATE = 'roles:update'
ROLES_DELETE = 'roles:delete'
ROLES_MANAGE = 'roles:manage'

CUSTOMERS_CREATE = 'customers:create'
CUSTOMERS_READ = 'customers:read'
CUSTOMERS_UPDATE = 'customers:update'
CUSTOMERS_DELETE = 'customers:delete'
CUSTOMERS_MANAGE = 'customers:manage'

APPOINTMENTS_CREATE = 'appointments:create'
APPOINTMENTS_READ = 'appointments:read'
APPOINTMENTS_UPDATE = 'appointments:update'
APPOINTMENTS_DELETE = 'appointments:delete'
APPOINTMENTS_MANAGE = 'appointments:manage'

BILLING_CREATE = 'billing:create'
BILLING_READ = 'billing:read'
BILLING_UPDATE = 'billing:update'
BILLING_MANAGE = 'billing:manage'

SERVICES_CREATE = 'services:create'
SERVICES_READ = 'services:read'
SERVICES_UPDATE = 'services:update'
SERVICES_DELETE = 'services:delete'
SERVICES_MANAGE = 'services:manage'

STAFF_CREATE = 'staff:create'
STAFF_READ = 'staff:read'
STAFF_UPDATE = 'staff:update'
STAFF_DELETE = 'staff:delete'
STAFF_MANAGE = 'staff:manage'

INVENTORY_READ = 'inventory:read'
INVENTORY_UPDATE = 'inventory:update'
INVENTORY_MANAGE = 'inventory:manage'

REPORTS_READ = 'reports:read'

PROCUREMENT_CREATE = 'procurement:create'
PROCUREMENT_READ = 'procurement:read'
PROCUREMENT_UPDATE = 'procurement:update'
PROCUREMENT_DELETE = 'procurement:delete'

CATEGORY_USERS = 'User Management'
CATEGORY_ROLES = 'Role Management'
CATEGORY_CUSTOMERS = 'Customer Management'
CATEGORY_APPOINTMENTS = 'Appointment Management'
CATEGORY_BILLING = 'Billing Management'
CATEGORY_SERVICES = 'Services Management'
CATEGORY_STAFF = 'Staff Management'
CATEGORY_INVENTORY = 'Inventory Management'
CATEGORY_REPORTS = 'Reports Access'
CATEGORY_PROCUREMENT = 'Procurement Management'
CATEGORY_SYSTEM = 'System Administration'

# (permission, description, category)
ALL_PERMISSIONS = [
    (USERS_CREATE, 'Create new users', CATEGORY_USERS),
    (USERS_READ, 'View user information', CATEGORY_USERS),
    (USERS_UPDATE, 'Update user information', CATEGORY_USERS),
    (USERS_DELETE, 'Delete users', CATEGORY_USERS),
    (USERS_MANAGE, 'Full user management access', CATEGORY_USERS),
    (ROLES_CREATE, 'Create new roles', CATEGORY_ROLES),
    (ROLES_READ, 'View role information', CATEGORY_ROLES),
    (ROLES_UPDATE, 'Update role information', CATEGORY_ROLES),
    (ROLES_DELETE, 'Delete roles', CATEGORY_ROLES),
    (ROLES_MANAGE, 'Full role management access', CATEGORY_ROLES),
    (CUSTOMERS_CREATE, 'Create new customers', CATEGORY_CUSTOMERS),
    (CUSTOMERS_READ, 'View customer information', CATEGORY_CUSTOMERS),
    (CUSTOMERS_UPDATE, 'Update customer information', CATEGORY_CUSTOMERS),
    (CUSTOMERS_DELETE, 'Delete customers', CATEGORY_CUSTOMERS),
    (CUSTOMERS_MANAGE, 'Full customer management access', CATEGORY_CUSTOMERS),
    (APPOINTMENTS_CREATE, 'Create new appointments', CATEGORY_APPOINTMENTS),
    (APPOINTMENTS_READ, 'View appointment information', CATEGORY_APPOINTMENTS),
    (APPOINTMENTS_UPDATE, 'Update appointment information', CATEGORY_APPOINTMENTS),
    (APPOINTMENTS_DELETE, 'Delete appointments', CATEGORY_APPOINTMENTS),
    (APPOINTMENTS_MANAGE, 'Full appointment management access', CATEGORY_APPOINTMENTS),
    (BILLING_CREATE, 'Create billing records', CATEGORY_BILLING),
    (BILLING_READ, 'View billing information', CATEGORY_BILLING),
    (BILLING_UPDATE, 'Update billing information', CATEGORY_BILLING),
    (BILLING_MANAGE, 'Full billing management access', CATEGORY_BILLING),
    (SERVICES_CREATE, 'Create new services', CATEGORY_SERVICES),
    (SERVICES_READ, 'View service information', CATEGORY_SERVICES),
    (SERVICES_UPDATE, 'Update service information', CATEGORY_SERVICES),
    (SERVICES_DELETE, 'Delete services', CATEGORY_SERVICES),
    (SERVICES_MANAGE, 'Full services management access', CATEGORY_SERVICES),
    (STAFF_CREATE, 'Create new staff members', CATEGORY_STAFF),
    (STAFF_READ, 'View staff information', CATEGORY_STAFF),
    (STAFF_UPDATE, 'Update staff information', CATEGORY_STAFF),
    (STAFF_DELETE, 'Delete staff members', CATEGORY_STAFF),
    (STAFF_MANAGE, 'Full staff management access', CATEGORY_STAFF),
    (INVENTORY_READ, 'View inventory information', CATEGORY_INVENTORY),
    (INVENTORY_UPDATE, 'Update inventory information', CATEGORY_INVENTORY),
    (INVENTORY_MANAGE, 'Full inventory management access', CATEGORY_INVENTORY),
    (REPORTS_READ, 'View reports and analytics', CATEGORY_REPORTS),
    (PROCUREMENT_CREATE, 'Create procurement records', CATEGORY_PROCUREMENT),
    (PROCUREMENT_READ, 'View procurement records', CATEGORY_PROCUREMENT),
    (PROCUREMENT_UPDATE, 'Update procurement records', CATEGORY_PROCUREMENT),
    (PROCUREMENT_DELETE, 'Delete procurement records', CATEGORY_PROCUREMENT),
    (ALL, 'Full system access (Super Admin)', CATEGORY_SYSTEM),
]

ROLE_TEMPLATES = {
    'SUPER_ADMIN': {
        'display_name': 'Super Admin',
        'description': 'Full system access',
        'permissions': [ALL],
    },
    'ADMIN': {
        'display_name': 'Admin',
        'description': 'Administrative access with most permissions',
        'permissions': [
            USERS_MANAGE, ROLES_READ, CUSTOMERS_MANAGE, APPOINTMENTS_MANAGE,
            BILLING_MANAGE, SERVICES_MANAGE, STAFF_MANAGE, INVENTORY_MANAGE,
            REPORTS_READ, PROCUREMENT_CREATE, PROCUREMENT_READ,
            PROCUREMENT_UPDATE, PROCUREMENT_DELETE,
        ],
    },
    'MANAGER': {
        'display_name': 'Manager',
        'description': 'Management access for daily operations',
        'permissions': [
            CUSTOMERS_MANAGE, APPOINTMENTS_MANAGE, BILLING_READ, SERVICES_READ,
            STAFF_READ, INVENTORY_UPDATE, REPORTS_READ, PROCUREMENT_CREATE,
            PROCUREMENT_READ, PROCUREMENT_UPDATE, PROCUREMENT_DELETE,
        ],
    },
    'STAFF': {
        'display_name': 'Staff',
        'description': 'Basic staff access for appointments and customers',
        'permissions': [
            CUSTOMERS_READ, CUSTOMERS_UPDATE, APPOINTMENTS_READ,
            APPOINTMENTS_UPDATE, SERVICES_READ, INVENTORY_READ, PROCUREMENT_READ,
        ],
    },
    'RECEPTIONIST': {
        'display_name': 'Receptionist',
        'description': 'Front desk operations access',
        'permissions': [
            CUSTOMERS_MANAGE, APPOINTMENTS_MANAGE, BILLING_CREATE, BILLING_READ,
            SERVICES_READ,
        ],
    },
}


def has_permission(granted, required):
    if ALL in granted or required in granted:
        return True
    resource = required.split(':', 1)[0]
    return f'{resource}:manage' in granted


def has_any_permission(granted, required):
    return any(has_permission(granted, permission) for permission in required)


def permission_required(*permissions):
    """Only let through logged-in users whose active role grants any of ``permissions``"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized('Authentication required.')
            if not has_any_permission(current_user.permissions(), permissions):
                raise Unauthorized()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
