"""
Redemption Service for PT Rewards
Records reward redemptions and their fulfillment status

Redeeming does not check or deduct the points balance; the cost is kept for
audit only and any deduction is the caller's job.
"""

import logging

from ptrewards.services.key_codec import check_child_key, identifier_to_key, key_to_identifier, user_path
from ptrewards.utils.error_handler import NotAuthenticatedError, ValidationError
from ptrewards.utils.timestamps import now_ms, format_timestamp
from ptrewards.utils.validators import clean_text, clamp_points, to_number

logger = logging.getLogger(__name__)

STATUS_NOT_SENT = 'NOT_SENT'
STATUS_SENT = 'SENT'
UNKNOWN_REWARD_ID = 'reward_unknown'

def normalize_status(status):
    """Only the exact literal 'SENT' counts as sent"""
    return STATUS_SENT if status == STATUS_SENT else STATUS_NOT_SENT

class RedemptionService:
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

    def list_redemptions(self):
        key = self._require_key()
        return self.store.get(user_path(key, 'rewardsRedeemed')) or {}

    def redeem(self, reward_id, cost, reward_name=None):
        """
        Write (or overwrite) the redemption record for a reward, status NOT_SENT
        """
        key = self._require_key()
        reward_id = clean_text(reward_id) or UNKNOWN_REWARD_ID
        check_child_key(reward_id, 'rewardId')

        payload = {
            'cost': clamp_points(cost),
            'rewardName': clean_text(reward_name) or reward_id,
            'redeemedAt': self.clock(),
            'status': STATUS_NOT_SENT
        }

        self.store.put(user_path(key, 'rewardsRedeemed', reward_id), payload)

        logger.info(f"User {key} redeemed {reward_id} (cost {payload['cost']})")
        return payload

    def all_redemption_rows(self):
        """
        Every redemption of every user as flat rows, newest first
        """
        users = self.store.get('users') or {}
        rows = []

        for key, user in users.items():
            if not isinstance(user, dict):
                continue
            profile = user.get('profile') or {}
            email = profile.get('email') or key_to_identifier(key)
            name = profile.get('displayName') or profile.get('name') or email.split('@')[0]

            for reward_id, record in (user.get('rewardsRedeemed') or {}).items():
                if not isinstance(record, dict):
                    continue
                redeemed_at = record.get('redeemedAt')
                rows.append({
                    'userKey': key,
                    'email': email,
                    'name': name,
                    'rewardId': reward_id,
                    'rewardName': record.get('rewardName') or reward_id,
                    'cost': record.get('cost', 0),
                    'redeemedAt': redeemed_at,
                    'redeemedAtLocal': format_timestamp(redeemed_at, self.config.report_timezone),
                    'status': record.get('status') or STATUS_NOT_SENT,
                    'updatedAt': record.get('updatedAt'),
                    'updatedBy': record.get('updatedBy')
                })

        rows.sort(key=lambda x: to_number(x['redeemedAt']) or 0, reverse=True)
        return rows

    def set_status(self, target_email, reward_id, status, updated_by):
        """
        Patch the fulfillment status of one redemption; anything but 'SENT' becomes 'NOT_SENT'
        """
        key = identifier_to_key(target_email)
        reward_id = clean_text(reward_id)
        if not key or not reward_id:
            raise ValidationError("Missing user email or reward id")
        check_child_key(reward_id, 'rewardId')

        update = {
            'status': normalize_status(status),
            'updatedAt': self.clock(),
            'updatedBy': updated_by
        }
        self.store.patch(user_path(key, 'rewardsRedeemed', reward_id), update)

        logger.info(f"Redemption {reward_id} of {key} set to {update['status']} by {updated_by}")
        return update
