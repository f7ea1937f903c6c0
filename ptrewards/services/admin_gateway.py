"""
Admin Gateway for PT Rewards
Role-gated sticker grants, redemption reports and status updates
"""

import logging

from ptrewards.services.account_service import ROLE_USER, ROLE_ADMIN
from ptrewards.services.key_codec import check_child_key, identifier_to_key, user_path
from ptrewards.utils.error_handler import AccessDeniedError, ValidationError, UnknownUserError
from ptrewards.utils.validators import clean_text

logger = logging.getLogger(__name__)

class AdminGateway:
    def __init__(self, accounts, ledger, redemptions):
        self.accounts = accounts
        self.ledger = ledger
        self.redemptions = redemptions
        self.store = accounts.store
        self.session = accounts.session

    def _require_admin(self):
        if not self.accounts.is_admin():
            logger.warning(f"Non-admin user attempted admin action: {self.session.get_current() or '<anonymous>'}")
            raise AccessDeniedError()
        return self.session.get_current()

    def _require_profile(self, key):
        profile = self.store.get(user_path(key, 'profile'))
        if not profile:
            raise UnknownUserError()
        return profile

    def grant_sticker_to_user(self, target_email, sticker_id, event_name=None):
        """
        Give a sticker to another user on the admin's verification.
        Granting the same sticker twice returns duplicate=True and changes nothing.
        """
        admin_identity = self._require_admin()

        key = identifier_to_key(target_email)
        sticker_id = clean_text(sticker_id)
        if not key or not sticker_id:
            raise ValidationError("Enter the user's email and a sticker id.")
        check_child_key(sticker_id, 'stickerId')

        self._require_profile(key)

        result = self.ledger.collect_sticker(key, sticker_id, clean_text(event_name), admin_identity)
        if result.get('duplicate'):
            logger.info(f"Sticker {sticker_id} already held by {key}")
        return result

    def admin_list_all_redemptions(self):
        self._require_admin()
        return self.redemptions.all_redemption_rows()

    def admin_update_status(self, target_email, reward_id, status):
        admin_identity = self._require_admin()
        return self.redemptions.set_status(target_email, reward_id, status, admin_identity)

    def set_user_role(self, target_email, role):
        """
        Promote or demote a user ('user' or 'admin')
        """
        admin_identity = self._require_admin()

        key = identifier_to_key(target_email)
        role = clean_text(role).lower()
        if not key:
            raise ValidationError("Enter the user's email.")
        if role not in (ROLE_USER, ROLE_ADMIN):
            raise ValidationError(f"Unknown role: {role}", field='role')

        self._require_profile(key)
        self.store.patch(user_path(key, 'profile'), {'role': role})

        logger.info(f"Role of {key} set to {role} by {admin_identity}")
        return {'key': key, 'role': role}
