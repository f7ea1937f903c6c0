"""
Error Handler for PT Rewards
Error taxonomy and conversion of failures into JSON responses
"""

from flask import jsonify
import logging
import traceback

logger = logging.getLogger(__name__)

class RewardsError(Exception):
    """Base exception class for PT Rewards"""
    def __init__(self, message, status_code=500, error_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

class ValidationError(RewardsError):
    """Raised when caller input is missing or malformed"""
    def __init__(self, message, field=None, error_code='VALIDATION_ERROR'):
        super().__init__(message, status_code=400, error_code=error_code)
        self.field = field

class MissingIdentifierError(ValidationError):
    """Raised when a required identifier is empty after trimming"""
    def __init__(self, message, field=None):
        super().__init__(message, field=field, error_code='MISSING_IDENTIFIER')

class NotAuthenticatedError(RewardsError):
    """Raised when an operation needs a session and there is none"""
    def __init__(self, message="Not logged in"):
        super().__init__(message, status_code=401, error_code='NOT_AUTHENTICATED')

class InvalidCredentialError(RewardsError):
    """Raised when the supplied password does not match the stored one"""
    def __init__(self, message="Wrong password."):
        super().__init__(message, status_code=401, error_code='INVALID_CREDENTIAL')

class AccessDeniedError(RewardsError):
    """Raised when an authenticated user lacks the admin role"""
    def __init__(self, message="Admin privileges required"):
        super().__init__(message, status_code=403, error_code='ACCESS_DENIED')

class AccountNotFoundError(RewardsError):
    """Raised when logging in to an account that does not exist"""
    def __init__(self, message="Invalid Account. Please Sign up."):
        super().__init__(message, status_code=404, error_code='ACCOUNT_NOT_FOUND')

class UnknownUserError(RewardsError):
    """Raised when an admin action targets a user without a profile"""
    def __init__(self, message="User not found"):
        super().__init__(message, status_code=404, error_code='UNKNOWN_USER')

class AccountExistsError(RewardsError):
    """Raised when signing up with an email that already has a profile"""
    def __init__(self, message="Account already exists. Try Login."):
        super().__init__(message, status_code=409, error_code='ACCOUNT_EXISTS')

class StoreError(RewardsError):
    """Raised when the record store answers with a failure"""
    def __init__(self, message, status=None, error_code='STORE_ERROR'):
        super().__init__(message, status_code=503, error_code=error_code)
        self.status = status

class StoreReadError(StoreError):
    """Raised when a read from the record store fails"""
    def __init__(self, message, status=None):
        super().__init__(message, status=status, error_code='STORE_READ_ERROR')

class StoreWriteError(StoreError):
    """Raised when a put or patch against the record store fails"""
    def __init__(self, message, status=None):
        super().__init__(message, status=status, error_code='STORE_WRITE_ERROR')

def handle_error(error):
    """
    Central error handler that converts exceptions to JSON responses
    """
    if isinstance(error, StoreError):
        logger.error(f"Store error: {error.message} (status={error.status})")
        return jsonify(format_error_response(error.message, error.error_code)), error.status_code

    if isinstance(error, RewardsError):
        logger.warning(f"Rewards error: {error.message}")
        return jsonify(format_error_response(error.message, error.error_code)), error.status_code

    # Log full traceback for debugging
    logger.error(f"Unhandled error: {str(error)}")
    logger.error(traceback.format_exc())

    return jsonify(format_error_response('An unexpected error occurred', 'INTERNAL_ERROR')), 500

def format_error_response(error_message, error_code=None):
    """
    Format error API response
    """
    response = {
        'status': 'error',
        'error': error_message
    }
    
    if error_code:
        response['error_code'] = error_code
    
    return response
