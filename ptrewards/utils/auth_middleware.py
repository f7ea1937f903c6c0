"""
Authentication Middleware for PT Rewards
Session and role gates for API endpoints, plus the navigation visibility contract
"""

from functools import wraps
from flask import g, jsonify
import logging

logger = logging.getLogger(__name__)

def require_auth(f):
    """
    Decorator to require a signed-in session for API endpoints
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.services.session.is_authenticated():
            return jsonify({'status': 'error', 'error': 'Not logged in', 'error_code': 'NOT_AUTHENTICATED'}), 401

        return f(*args, **kwargs)

    return decorated_function

def require_admin(f):
    """
    Decorator to require the admin role
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        services = g.services
        if not services.session.is_authenticated():
            return jsonify({'status': 'error', 'error': 'Not logged in', 'error_code': 'NOT_AUTHENTICATED'}), 401

        if not services.accounts.is_admin():
            logger.warning(f"Non-admin user attempted admin action: {services.session.get_current()}")
            return jsonify({'status': 'error', 'error': 'Admin privileges required', 'error_code': 'ACCESS_DENIED'}), 403

        return f(*args, **kwargs)

    return decorated_function

def nav_state(session, logout_redirect='login.html', show_when_logged_in=()):
    """
    Which navigation controls a page should show for the current session.

    The sign-in control is shown only when logged out; the logout control and
    every id in show_when_logged_in only when logged in.
    """
    logged_in = session.is_authenticated()

    return {
        'loggedIn': logged_in,
        'signIn': not logged_in,
        'logout': logged_in,
        'showWhenLoggedIn': {element_id: logged_in for element_id in show_when_logged_in},
        'logoutRedirect': logout_redirect
    }
