"""
Route decorators shared by the BYOM blueprints.

Authentication itself belongs to the host application: it puts ``user_id``
(customers) and ``admin_id`` (administrators) into the Flask session.
"""

from functools import wraps
from flask import jsonify, session
from .exceptions import BYOMError
from .logging_service import LoggingService, db_log


def login_required(f):
    """Decorator to require a signed-in customer (JSON API)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require admin login (JSON API)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'admin_id' not in session:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def json_errors(source):
    """Turn BYOMError subclasses into ``{'success': False, 'error': ...}`` responses"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except BYOMError as e:
                if e.http_status >= 500:
                    db_log('error', source, e.message, e.details)
                return jsonify(e.to_dict()), e.http_status
            except Exception as e:
                LoggingService.log_error_with_traceback(source, e, {"endpoint": f.__name__})
                return jsonify({'success': False, 'error': 'Internal server error'}), 500
        return decorated_function
    return decorator
