from flask import Blueprint, request, current_app
from flask_login import current_user
from datetime import datetime, timedelta
from collections import defaultdict
from salon import db
from salon.admin.forms import RoleForm, UserCreateForm, UserUpdateForm
from salon.models.audit import AuditLog
from salon.models.invoice import Invoice
from salon.models.user import User, Role, Permission
from salon.utils.audit import log_audit
from salon.utils.errors import BadRequest, Conflict, NotFound
from salon.utils.forms import request_payload
from salon.utils.permissions import (
    permission_required, ROLES_CREATE, ROLES_READ, ROLES_UPDATE, ROLES_DELETE,
    USERS_CREATE, USERS_READ, USERS_UPDATE, USERS_DELETE, ALL
)
from salon.utils.responses import api_response, pagination_meta

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')

AUDIT_PER_PAGE = 50


def get_role_or_404(role_id):
    role = db.session.get(Role, role_id)
    if role is None:
        raise NotFound('Role not found.')
    return role


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound('User not found.')
    return user


def ensure_can_grant(permissions):
    """Only a super admin may hand out the wildcard permission"""
    if ALL in permissions and ALL not in current_user.permissions():
        raise BadRequest('Only a super admin can grant all permissions.')


# Roles

@admin_bp.route('/roles', methods=['GET'])
@permission_required(ROLES_READ)
def roles():
    roles_list = Role.query.order_by(Role.name).all()
    data = []
    for role in roles_list:
        item = role.to_dict()
        item['user_count'] = role.users.count()
        data.append(item)
    return api_response(data)


@admin_bp.route('/roles', methods=['POST'])
@permission_required(ROLES_CREATE)
def create_role():
    form = RoleForm.from_request().validate_or_raise()
    name = form.name.data.strip().upper()
    if Role.query.filter_by(name=name).first():
        raise Conflict('A role with this name already exists.', exists=True)
    ensure_can_grant(form.permissions.data)

    role = Role(
        name=name,
        display_name=form.display_name.data.strip(),
        permissions=form.permissions.data,
        description=form.description.data or None
    )
    db.session.add(role)
    db.session.commit()

    log_audit('create', 'role', entity_id=role.id, details={
        'name': role.name,
        'permissions': role.permissions,
    })
    return api_response(role.to_dict(), 'Role created.', 201)


@admin_bp.route('/roles/<int:role_id>', methods=['PUT'])
@permission_required(ROLES_UPDATE)
def update_role(role_id):
    role = get_role_or_404(role_id)
    if role.is_system_role:
        raise Conflict('System roles cannot be modified.')

    form = RoleForm.from_request().validate_or_raise()
    name = form.name.data.strip().upper()
    existing = Role.query.filter_by(name=name).first()
    if existing and existing.id != role.id:
        raise Conflict('A role with this name already exists.', exists=True)
    ensure_can_grant(form.permissions.data)

    old_values = {'name': role.name, 'permissions': role.permissions}
    role.name = name
    role.display_name = form.display_name.data.strip()
    role.description = form.description.data or None
    role.permissions = list(form.permissions.data)
    db.session.commit()

    log_audit('update', 'role', entity_id=role.id, details={
        'old': old_values,
        'new': {'name': role.name, 'permissions': role.permissions},
    })
    return api_response(role.to_dict(), 'Role updated.')


@admin_bp.route('/roles/<int:role_id>', methods=['DELETE'])
@permission_required(ROLES_DELETE)
def delete_role(role_id):
    role = get_role_or_404(role_id)
    if role.is_system_role:
        raise Conflict('System roles cannot be deleted.')
    user_count = role.users.count()
    if user_count:
        raise Conflict(f'Role is assigned to {user_count} user(s); reassign them first.', user_count=user_count)

    name = role.name
    db.session.delete(role)
    db.session.commit()

    log_audit('delete', 'role', entity_id=role_id, details={'name': name})
    return api_response(None, 'Role deleted.')


# Users

@admin_bp.route('/users', methods=['GET'])
@permission_required(USERS_READ)
def users():
    """List users with optional role filtering"""
    role_id = request.args.get('role_id', type=int)
    query = User.query
    if role_id:
        query = query.filter(User.role_id == role_id)
    return api_response([u.to_dict() for u in query.order_by(User.name).all()])


@admin_bp.route('/users', methods=['POST'])
@permission_required(USERS_CREATE)
def create_user():
    form = UserCreateForm.from_request().validate_or_raise()
    role = get_role_or_404(form.role_id.data)
    ensure_can_grant(role.permissions or [])

    user = User(
        name=form.name.data.strip(),
        email=form.email.data,
        password=form.password.data,
        role_id=role.id,
        created_by_id=current_user.id
    )
    db.session.add(user)
    db.session.commit()

    log_audit('create', 'user', entity_id=user.id, details={
        'email': user.email,
        'name': user.name,
        'role': role.name,
    })
    return api_response(user.to_dict(), 'User created.', 201)


@admin_bp.route('/users/<int:user_id>', methods=['PUT'])
@permission_required(USERS_UPDATE)
def update_user(user_id):
    user = get_user_or_404(user_id)
    payload = request_payload()
    form = UserUpdateForm.from_request(payload, user_id=user.id).validate_or_raise()
    role = get_role_or_404(form.role_id.data)
    ensure_can_grant(role.permissions or [])
    if user.id == current_user.id and 'is_active' in payload and not form.is_active.data:
        raise Conflict('You cannot deactivate your own account.')

    # Track old values for audit log
    old_values = {
        'name': user.name,
        'email': user.email,
        'role_id': user.role_id,
        'is_active': user.is_active,
    }

    user.name = form.name.data.strip()
    user.email = form.email.data.strip().lower()
    user.role_id = role.id
    if 'is_active' in payload:
        user.is_active = form.is_active.data
    password_changed = bool(form.password.data)
    if password_changed:
        user.set_password(form.password.data)
    db.session.commit()

    log_audit('update', 'user', entity_id=user.id, details={
        'old': old_values,
        'new': {
            'name': user.name,
            'email': user.email,
            'role_id': user.role_id,
            'is_active': user.is_active,
        },
        'password_changed': password_changed,
    })
    return api_response(user.to_dict(), 'User updated.')


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@permission_required(USERS_DELETE)
def delete_user(user_id):
    user = get_user_or_404(user_id)
    if user.id == current_user.id:
        raise Conflict('You cannot delete your own account.')

    email = user.email
    # Keep the audit trail and creator links pointing at nothing rather than a missing row
    AuditLog.query.filter_by(user_id=user.id).update({'user_id': None})
    User.query.filter_by(created_by_id=user.id).update({'created_by_id': None})
    Invoice.query.filter_by(processed_by_id=user.id).update({'processed_by_id': None})
    db.session.delete(user)
    db.session.commit()

    log_audit('delete', 'user', entity_id=user_id, details={'email': email})
    return api_response(None, 'User deleted.')


# Permissions and audit trail

@admin_bp.route('/permissions', methods=['GET'])
@permission_required(ROLES_READ)
def permissions():
    grouped = defaultdict(list)
    for permission in Permission.query.order_by(Permission.category, Permission.permission).all():
        grouped[permission.category].append(permission.to_dict())
    return api_response(dict(grouped))


@admin_bp.route('/audit-logs', methods=['GET'])
@permission_required(USERS_READ)
def audit_logs():
    """System audit logs with filtering options"""
    action_filter = request.args.get('action', '')
    entity_type_filter = request.args.get('entity_type', '')
    user_id_filter = request.args.get('user_id', '')
    date_from = request.args.get('date_from', '')
    date_to = request.args.get('date_to', '')

    query = AuditLog.query

    if action_filter:
        query = query.filter(AuditLog.action == action_filter)

    if entity_type_filter:
        query = query.filter(AuditLog.entity_type == entity_type_filter)

    if user_id_filter and user_id_filter.isdigit():
        query = query.filter(AuditLog.user_id == int(user_id_filter))

    if date_from:
        try:
            query = query.filter(AuditLog.timestamp >= datetime.strptime(date_from, '%Y-%m-%d'))
        except ValueError:
            raise BadRequest('Invalid from date format. Use YYYY-MM-DD.')

    if date_to:
        try:
            # Add one day to include the entire end date
            date_to_obj = datetime.strptime(date_to, '%Y-%m-%d') + timedelta(days=1)
        except ValueError:
            raise BadRequest('Invalid to date format. Use YYYY-MM-DD.')
        query = query.filter(AuditLog.timestamp < date_to_obj)

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('limit', AUDIT_PER_PAGE, type=int)
    pagination = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )

    current_app.logger.debug(f"Audit log page {page}: {len(pagination.items)} entries")
    return api_response(
        [entry.to_dict() for entry in pagination.items],
        pagination=pagination_meta(pagination),
        filters={
            'action': action_filter,
            'entity_type': entity_type_filter,
            'user_id': user_id_filter,
            'date_from': date_from,
            'date_to': date_to,
        }
    )
