# Import important modules and create app package
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_migrate import Migrate
from dotenv import load_dotenv
import logging

# Load environment variables
load_dotenv()

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()

def create_app(config_class=None):
    # Initialize app
    app = Flask(__name__)

    # Configure app
    from salon.config import Config
    app.config.from_object(config_class or Config)
    app.logger.setLevel(getattr(logging, app.config['LOG_LEVEL'], logging.INFO))

    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    # Register blueprints
    from salon.auth.routes import auth_bp
    from salon.appointment.routes import appointment_bp
    from salon.billing.routes import billing_bp
    from salon.customer.routes import customer_bp
    from salon.catalog.routes import catalog_bp
    from salon.incentive.routes import incentive_bp
    from salon.attendance.routes import attendance_bp
    from salon.payroll.routes import payroll_bp
    from salon.procurement.routes import procurement_bp
    from salon.admin.routes import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(appointment_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(customer_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(incentive_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(payroll_bp)
    app.register_blueprint(procurement_bp)
    app.register_blueprint(admin_bp)

    # JSON error envelope for every failure path
    from salon.utils.errors import register_error_handlers
    register_error_handlers(app)

    from salon.cli import register_commands
    register_commands(app)

    @app.get('/health')
    def health():
        return {'success': True, 'message': 'ok', 'data': None}

    # Create database tables
    with app.app_context():
        from salon import models  # noqa: F401
        db.create_all()
        app.logger.debug("Database tables created")

    return app
