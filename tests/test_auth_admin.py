"""
Tests for login, permission checks and the admin endpoints.
"""

import pytest

from salon.utils.permissions import has_permission, has_any_permission
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def create_role(client, name='VIEWER', permissions=('customers:read',)):
    response = client.post('/api/admin/roles', json={
        'name': name, 'display_name': name.title(), 'permissions': list(permissions),
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


def create_user(client, role_id, email='viewer@example.com', password='viewer-pass-1'):
    response = client.post('/api/admin/users', json={
        'name': 'Vera Viewer', 'email': email, 'password': password, 'role_id': role_id,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


def login(app, email, password):
    client = app.test_client()
    response = client.post('/api/auth/login', json={'email': email, 'password': password})
    return client, response


class TestPermissionChecks:

    @pytest.mark.parametrize('granted, required, expected', [
        (['*'], 'billing:create', True),
        (['billing:create'], 'billing:create', True),
        (['billing:manage'], 'billing:read', True),
        (['billing:read'], 'billing:create', False),
        (['customers:manage'], 'billing:read', False),
        ([], 'customers:read', False),
    ])
    def test_has_permission(self, granted, required, expected):
        assert has_permission(granted, required) is expected

    def test_has_any_permission(self):
        assert has_any_permission(['staff:read'], ['users:read', 'staff:read'])
        assert not has_any_permission(['staff:read'], ['users:read'])


class TestAuth:
    """Test login, logout and the session user."""

    def test_anonymous_requests_are_rejected(self, anon_client):
        response = anon_client.get('/api/customer')
        assert response.status_code == 401
        assert response.get_json()['success'] is False
        assert anon_client.get('/api/auth/me').status_code == 401

    def test_bad_credentials(self, app):
        _, response = login(app, ADMIN_EMAIL, 'wrong-password')
        assert response.status_code == 401
        _, response = login(app, 'nobody@example.com', ADMIN_PASSWORD)
        assert response.status_code == 401

    def test_me_and_logout(self, client):
        me = client.get('/api/auth/me').get_json()['data']
        assert me['email'] == ADMIN_EMAIL
        assert me['role']['name'] == 'SUPER_ADMIN'
        assert me['last_login'] is not None

        assert client.post('/api/auth/logout').status_code == 200
        assert client.get('/api/auth/me').status_code == 401

    def test_email_is_case_insensitive(self, app):
        _, response = login(app, ' Admin@Example.com ', ADMIN_PASSWORD)
        assert response.status_code == 200

    def test_unknown_route_id_is_json_404(self, client):
        response = client.get('/api/customer/not-a-number')
        assert response.status_code == 404
        assert response.get_json()['success'] is False


class TestRoleBasedAccess:
    """Test that a role's permissions limit what its users can do."""

    def test_limited_role(self, app, client):
        role = create_role(client)
        create_user(client, role['id'])

        viewer, response = login(app, 'viewer@example.com', 'viewer-pass-1')
        assert response.status_code == 200
        assert viewer.get('/api/customer').status_code == 200

        denied = viewer.post('/api/customer', json={
            'name': 'Ana', 'email': 'ana@example.com', 'phone': '5550102030',
        })
        assert denied.status_code == 401
        assert viewer.get('/api/admin/roles').status_code == 401

    def test_deactivated_user_cannot_log_in(self, app, client):
        role = create_role(client)
        user = create_user(client, role['id'])
        response = client.put(f"/api/admin/users/{user['id']}", json={
            'name': user['name'], 'email': user['email'], 'role_id': role['id'], 'is_active': False,
        })
        assert response.status_code == 200
        assert response.get_json()['data']['is_active'] is False

        _, response = login(app, 'viewer@example.com', 'viewer-pass-1')
        assert response.status_code == 401

    def test_only_super_admin_grants_everything(self, app, client):
        role = create_role(client, name='USER_ADMIN', permissions=['roles:manage', 'users:manage'])
        create_user(client, role['id'], email='ua@example.com')
        user_admin, _ = login(app, 'ua@example.com', 'viewer-pass-1')

        response = user_admin.post('/api/admin/roles', json={
            'name': 'ROOT', 'display_name': 'Root', 'permissions': ['*'],
        })
        assert response.status_code == 400


class TestRoles:
    """Test role management rules."""

    def test_system_roles_are_protected(self, client):
        roles = client.get('/api/admin/roles').get_json()['data']
        super_admin = next(r for r in roles if r['name'] == 'SUPER_ADMIN')
        assert super_admin['is_system_role'] is True
        assert super_admin['user_count'] == 1

        assert client.delete(f"/api/admin/roles/{super_admin['id']}").status_code == 409
        response = client.put(f"/api/admin/roles/{super_admin['id']}", json={
            'name': 'SUPER_ADMIN', 'display_name': 'Boss', 'permissions': ['*'],
        })
        assert response.status_code == 409

    def test_role_in_use_cannot_be_deleted(self, client):
        role = create_role(client)
        create_user(client, role['id'])
        response = client.delete(f"/api/admin/roles/{role['id']}")
        assert response.status_code == 409
        assert response.get_json()['user_count'] == 1

    def test_delete_unused_role(self, client):
        role = create_role(client)
        assert client.delete(f"/api/admin/roles/{role['id']}").status_code == 200
        names = [r['name'] for r in client.get('/api/admin/roles').get_json()['data']]
        assert 'VIEWER' not in names

    def test_duplicate_role_name(self, client):
        create_role(client)
        response = client.post('/api/admin/roles', json={
            'name': 'viewer', 'display_name': 'Viewer', 'permissions': ['customers:read'],
        })
        assert response.status_code == 409

    def test_unknown_permission_is_rejected(self, client):
        response = client.post('/api/admin/roles', json={
            'name': 'ODD', 'display_name': 'Odd', 'permissions': ['rockets:launch'],
        })
        assert response.status_code == 400

    def test_permissions_are_grouped(self, client):
        grouped = client.get('/api/admin/permissions').get_json()['data']
        assert 'Billing Management' in grouped
        billing = {p['permission'] for p in grouped['Billing Management']}
        assert {'billing:create', 'billing:read'} <= billing
        assert grouped['System Administration'][0]['permission'] == '*'


class TestUsers:
    """Test user management rules."""

    def test_duplicate_email(self, client):
        role = create_role(client)
        create_user(client, role['id'])
        response = client.post('/api/admin/users', json={
            'name': 'Copy', 'email': 'VIEWER@example.com', 'password': 'another-pass', 'role_id': role['id'],
        })
        assert response.status_code == 400
        assert 'email' in response.get_json()['errors']

    def test_cannot_delete_self(self, client):
        me = client.get('/api/auth/me').get_json()['data']
        assert client.delete(f"/api/admin/users/{me['id']}").status_code == 409

    def test_delete_user_keeps_audit_trail(self, app, client):
        role = create_role(client)
        user = create_user(client, role['id'])
        viewer, _ = login(app, 'viewer@example.com', 'viewer-pass-1')
        viewer.get('/api/customer')

        assert client.delete(f"/api/admin/users/{user['id']}").status_code == 200
        emails = [u['email'] for u in client.get('/api/admin/users').get_json()['data']]
        assert 'viewer@example.com' not in emails


class TestAuditLogs:

    def test_filter_by_entity_type(self, client):
        client.post('/api/customer', json={'name': 'Ana', 'email': 'ana@example.com', 'phone': '5550102030'})
        body = client.get('/api/admin/audit-logs?entity_type=customer').get_json()
        assert body['pagination']['total'] == 1
        entry = body['data'][0]
        assert entry['action'] == 'create'
        assert entry['entity_type'] == 'customer'
        assert body['filters']['entity_type'] == 'customer'

    def test_login_is_audited(self, client):
        entries = client.get('/api/admin/audit-logs?entity_type=login&action=perform').get_json()['data']
        assert len(entries) == 1

    def test_bad_date_filter(self, client):
        assert client.get('/api/admin/audit-logs?date_from=yesterday').status_code == 400
