from flask import Blueprint, request
from flask_login import login_user, logout_user, login_required, current_user
from datetime import datetime
from salon import db, login_manager
from salon.auth.forms import LoginForm
from salon.models.user import User
from salon.utils.audit import log_audit
from salon.utils.errors import Unauthorized
from salon.utils.responses import api_response

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


@login_manager.unauthorized_handler
def unauthorized():
    raise Unauthorized('Authentication required.')


@auth_bp.route('/login', methods=['POST'])
def login():
    form = LoginForm.from_request().validate_or_raise()
    email = form.email.data.strip().lower()
    user = User.query.filter_by(email=email).first()

    if user is None or not user.check_password(form.password.data):
        # Log failed login attempt
        log_audit('attempt', 'login', user.id if user else None, {
            'email': email,
            'reason': 'invalid_credentials',
        })
        raise Unauthorized('Invalid email or password.')

    if not user.is_active or user.role is None or not user.role.is_active:
        log_audit('attempt', 'login', user.id, {
            'email': email,
            'reason': 'account_inactive',
        })
        raise Unauthorized('Your account is currently deactivated. Please contact support.')

    login_user(user, remember=form.remember_me.data)
    user.last_login = datetime.utcnow()
    db.session.commit()

    log_audit('perform', 'login', user.id, {
        'email': user.email,
        'user_agent': request.user_agent.string,
        'remember_me': form.remember_me.data,
    })
    return api_response(user.to_dict(), 'Login successful.')


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    log_audit('perform', 'logout', current_user.id, {'email': current_user.email})
    logout_user()
    return api_response(None, 'You have been logged out.')


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    return api_response(current_user.to_dict())
