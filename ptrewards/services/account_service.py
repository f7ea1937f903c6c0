"""
Account Service for PT Rewards
Handles signup, login, session lifecycle and the user record upgrade

Passwords are stored and compared in plain text. This is a known weakness of
the prototype data model and is kept as-is.
"""

import logging

from ptrewards.services.key_codec import identifier_to_key, user_path
from ptrewards.utils.error_handler import (
    ValidationError,
    NotAuthenticatedError,
    AccountExistsError,
    AccountNotFoundError,
    InvalidCredentialError,
)
from ptrewards.utils.timestamps import now_ms
from ptrewards.utils.validators import clean_text

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2
ROLE_USER = 'user'
ROLE_ADMIN = 'admin'

def default_display_name(email):
    return email.split('@')[0] or 'User'

def default_profile(email, created_at):
    return {
        'email': email,
        'displayName': default_display_name(email),
        'createdAt': created_at,
        'role': ROLE_USER
    }

def upgrade_user_record(record, email, default_points, created_at):
    """
    Return the patch that brings a stored user record up to SCHEMA_VERSION.

    Version 1 records carry `profile.name` and no role; version 2 renames the
    field to `displayName` and requires `role`. Partially created accounts
    (no profile at all) get a default profile and the default balance,
    whatever balance they held. The password is never touched.
    An empty dict means the record is already current.
    """
    record = record if isinstance(record, dict) else {}
    patch = {}

    profile = record.get('profile')
    if not isinstance(profile, dict):
        patch['profile'] = default_profile(email, created_at)
        patch['points'] = default_points
    else:
        upgraded = dict(profile)
        if not upgraded.get('displayName'):
            upgraded['displayName'] = upgraded.get('name') or default_display_name(upgraded.get('email') or email)
        if not upgraded.get('role'):
            upgraded['role'] = ROLE_USER
        if upgraded != profile:
            patch['profile'] = upgraded

    if 'points' not in patch and record.get('points') is None:
        patch['points'] = default_points

    if patch or record.get('schemaVersion') != SCHEMA_VERSION:
        patch['schemaVersion'] = SCHEMA_VERSION

    return patch

class AccountService:
    def __init__(self, store, session, config, clock=now_ms):
        self.store = store
        self.session = session
        self.config = config
        self.clock = clock

    def _require_key(self):
        key = self.session.current_key()
        if not key:
            raise NotAuthenticatedError()
        return key

    def current_identity(self):
        """
        Email and storage key of the signed-in user
        """
        key = self._require_key()
        return {'email': self.session.get_current(), 'key': key}

    def sign_up(self, email, password, name=None):
        """
        Create a new account and sign it in.

        The existence check and the write are separate round trips, so two
        concurrent signups for one email can both succeed (last write wins).
        """
        email = clean_text(email).lower()
        password = str(password if password is not None else '')
        name = clean_text(name)

        if not email or len(password) < self.config.min_password_length:
            raise ValidationError(
                f"Enter a valid email and password (min {self.config.min_password_length} chars)."
            )

        key = identifier_to_key(email)

        existing = self.store.get(user_path(key, 'profile'))
        if existing:
            logger.warning(f"Attempt to create user with existing email: {email}")
            raise AccountExistsError()

        profile = default_profile(email, self.clock())
        if name:
            profile['displayName'] = name

        user_doc = {
            'profile': profile,
            'password': password,
            'points': self.config.default_points,
            'pointsHistory': {},
            'coursesCompleted': {},
            'stickers': {},
            'unlocks': {},
            'rewardsRedeemed': {},
            'schemaVersion': SCHEMA_VERSION
        }

        self.store.put(user_path(key), user_doc)
        self.session.set_current(email)

        logger.info(f"Created new user: {email} with key: {key}")
        return {'email': email, 'key': key}

    def log_in(self, email, password):
        """
        Sign in by comparing the supplied password with the stored one (exact match)
        """
        email = clean_text(email).lower()
        password = str(password if password is not None else '')

        if not email or not password:
            raise ValidationError("Enter email & password.")

        key = identifier_to_key(email)
        data = self.store.get(user_path(key))

        if not data:
            logger.warning(f"Login attempt with non-existent email: {email}")
            raise AccountNotFoundError()
        if str(data.get('password') or '') != password:
            logger.warning(f"Wrong password for: {email}")
            raise InvalidCredentialError()

        self.session.set_current(email)

        logger.info(f"User logged in: {email}")
        return {'email': email, 'key': key}

    def log_out(self):
        self.session.clear()

    def ensure_account_exists(self):
        """
        Repair and upgrade the signed-in user's record; safe to call on every page load.
        Returns the patch that was applied (empty when nothing changed).
        """
        key = self._require_key()
        email = self.session.get_current().lower()

        record = self.store.get(user_path(key))
        patch = upgrade_user_record(record, email, self.config.default_points, self.clock())

        if patch:
            self.store.patch(user_path(key), patch)
            logger.info(f"Upgraded user record {key}: {sorted(patch)}")

        return patch

    def get_profile(self):
        key = self._require_key()
        profile = self.store.get(user_path(key, 'profile'))
        return profile or None

    def is_admin(self):
        """
        True iff the signed-in user's profile role is 'admin' (any case); never raises for no session
        """
        key = self.session.current_key()
        if not key:
            return False

        profile = self.store.get(user_path(key, 'profile')) or {}
        role = profile.get('role') if isinstance(profile, dict) else None
        return clean_text(role).lower() == ROLE_ADMIN
