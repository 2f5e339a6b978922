from flask import request, current_app, has_request_context
from flask_login import current_user
from salon.models.audit import AuditLog
from salon import db

def log_audit(action, entity_type, entity_id=None, details=None, user_id=None):
    """
    Log an audit entry

    Parameters:
    - action: The action performed (e.g., 'create', 'check_in', 'pay')
    - entity_type: The type of entity affected (e.g., 'appointment', 'customer')
    - entity_id: ID of the affected entity (optional)
    - details: Additional details about the action (optional)
    - user_id: Acting user, defaults to the logged-in user

    Called after the business transaction has committed, so a failure here
    is logged and reported but never undoes the business change.
    """
    try:
        ip_address = None
        if has_request_context():
            # Get user ID if logged in
            if user_id is None and current_user and current_user.is_authenticated:
                user_id = current_user.id
            ip_address = request.remote_addr

        # Create audit log entry
        audit_entry = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
            ip_address=ip_address
        )

        db.session.add(audit_entry)
        db.session.commit()

        return True
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to log audit entry: {e}")
        return False
