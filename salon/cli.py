import click
from flask import current_app
from salon import db
from salon.models.user import User, Role, Permission
from salon.utils.permissions import ALL_PERMISSIONS, ROLE_TEMPLATES


def seed_permissions():
    """Insert or refresh the permission catalogue; returns the number added"""
    added = 0
    for permission, description, category in ALL_PERMISSIONS:
        entry = Permission.query.filter_by(permission=permission).first()
        if entry is None:
            db.session.add(Permission(permission, description, category))
            added += 1
        else:
            entry.description = description
            entry.category = category
    return added


def seed_roles():
    """Create the built-in roles from their templates, leaving existing ones untouched"""
    roles = {}
    for name, template in ROLE_TEMPLATES.items():
        role = Role.query.filter_by(name=name).first()
        if role is None:
            role = Role(
                name=name,
                display_name=template['display_name'],
                permissions=template['permissions'],
                description=template['description'],
                is_system_role=True
            )
            db.session.add(role)
        roles[name] = role
    db.session.flush()
    return roles


def seed_super_admin(roles, name, email, password):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is not None:
        return user, False
    user = User(name=name, email=email, password=password, role_id=roles['SUPER_ADMIN'].id)
    db.session.add(user)
    return user, True


def seed_all(name, email, password):
    added = seed_permissions()
    roles = seed_roles()
    user, created = seed_super_admin(roles, name, email, password)
    db.session.commit()
    return added, roles, user, created


def register_commands(app):
    @app.cli.command('seed')
    @click.option('--email', default=None, help='Super admin email (defaults to SEED_ADMIN_EMAIL).')
    @click.option('--password', default=None, help='Super admin password (defaults to SEED_ADMIN_PASSWORD).')
    def seed(email, password):
        """Seed permissions, the built-in roles and an initial super admin."""
        config = current_app.config
        email = email or config['SEED_ADMIN_EMAIL']
        password = password or config['SEED_ADMIN_PASSWORD']
        if not email or not password:
            raise click.UsageError('Set SEED_ADMIN_EMAIL and SEED_ADMIN_PASSWORD or pass --email/--password.')

        added, roles, user, created = seed_all(config['SEED_ADMIN_NAME'], email, password)
        click.echo(f'Permissions added: {added}')
        click.echo(f'Roles available: {", ".join(sorted(roles))}')
        if created:
            click.echo(f'Super admin created: {user.email}')
        else:
            click.echo(f'Super admin already exists: {user.email}')
