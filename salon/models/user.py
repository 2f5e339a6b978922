from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from salon import db, login_manager
from salon.utils.json_utils import isoformat


class Role(db.Model):
    __tablename__ = 'roles'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)  # stored upper-case
    display_name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    permissions = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, default=True, index=True)
    is_system_role = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    users = db.relationship('User', backref='role', lazy='dynamic')

    def __init__(self, name, display_name, permissions, description=None, is_system_role=False):
        self.name = name.strip().upper()
        self.display_name = display_name
        self.permissions = list(permissions)
        self.description = description
        self.is_system_role = is_system_role

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'display_name': self.display_name,
            'description': self.description,
            'permissions': self.permissions or [],
            'is_active': self.is_active,
            'is_system_role': self.is_system_role,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<Role {self.name}>'


class Permission(db.Model):
    """Catalogue entry describing one ``resource:action`` permission string"""
    __tablename__ = 'permissions'

    id = db.Column(db.Integer, primary_key=True)
    permission = db.Column(db.String(100), unique=True, nullable=False)
    resource = db.Column(db.String(50), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(100), nullable=False)

    def __init__(self, permission, description, category):
        self.permission = permission
        resource, _, action = permission.partition(':')
        self.resource = resource.lower()
        self.action = (action or resource).lower()
        self.description = description
        self.category = category

    def to_dict(self):
        return {
            'permission': self.permission,
            'resource': self.resource,
            'action': self.action,
            'description': self.description,
            'category': self.category,
        }

    def __repr__(self):
        return f'<Permission {self.permission}>'


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role_id = db.Column(db.Integer, db.ForeignKey('roles.id'), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __init__(self, name, email, password, role_id, created_by_id=None):
        self.name = name
        self.email = email.strip().lower()
        self.set_password(password)
        self.role_id = role_id
        self.created_by_id = created_by_id

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def permissions(self):
        if not self.role or not self.role.is_active:
            return []
        return self.role.permissions or []

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'is_active': self.is_active,
            'last_login': isoformat(self.last_login),
            'role': {
                'id': self.role.id,
                'name': self.role.name,
                'display_name': self.role.display_name,
                'permissions': self.role.permissions or [],
            } if self.role else None,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f'<User {self.email}>'

@login_manager.user_loader
def load_user(id):
    user = db.session.get(User, int(id))
    if user is None or not user.is_active:
        return None
    return user
