"""Application configuration.

Values come from the environment (a local ``.env`` is loaded by the package
on import) so that the rest of the code reads ``current_app.config`` only.
"""

import os


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-key')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///salon.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # JSON API: forms are fed from request bodies, not rendered pages
    WTF_CSRF_ENABLED = False

    # Default page size for paginated listings
    PER_PAGE = int(os.environ.get('PER_PAGE', '10'))

    # Initial super admin created by `flask seed`
    SEED_ADMIN_NAME = os.environ.get('SEED_ADMIN_NAME', 'Super Admin')
    SEED_ADMIN_EMAIL = os.environ.get('SEED_ADMIN_EMAIL', 'admin@example.com')
    SEED_ADMIN_PASSWORD = os.environ.get('SEED_ADMIN_PASSWORD', 'change-me-now')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    LOG_LEVEL = 'WARNING'
