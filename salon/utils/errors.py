from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import IntegrityError
import traceback
from salon import db


class ApiError(Exception):
    """Error raised by route code and rendered as the JSON envelope"""
    status_code = 500
    default_message = 'An unexpected error occurred.'

    def __init__(self, message=None, status_code=None, **extra):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self):
        payload = {'success': False, 'message': self.message, 'data': None}
        payload.update(self.extra)
        return payload


class BadRequest(ApiError):
    status_code = 400
    default_message = 'Invalid request.'


class Unauthorized(ApiError):
    status_code = 401
    default_message = 'Unauthorized'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Not found.'


class Conflict(ApiError):
    status_code = 409
    default_message = 'Conflict.'


class ValidationFailed(BadRequest):
    """Raised with a WTForms ``errors`` mapping"""

    def __init__(self, errors, message='Validation failed.'):
        super().__init__(message, errors=errors)


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error):
        # A unique constraint lost a race with a concurrent write
        db.session.rollback()
        current_app.logger.warning(f"Integrity error: {error.orig}")
        return jsonify({'success': False, 'message': 'Record conflicts with existing data.', 'data': None}), 409

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'success': False, 'message': error.description, 'data': None}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        current_app.logger.error(f"Unhandled error: {error}\n{traceback.format_exc()}")
        return jsonify({'success': False, 'message': 'An internal server error occurred.', 'data': None}), 500
