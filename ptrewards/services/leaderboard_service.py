"""
Leaderboard Service for PT Rewards
Read-only rankings projected from the whole users tree
"""

import logging

from ptrewards.utils.validators import to_number

logger = logging.getLogger(__name__)

class LeaderboardService:
    def __init__(self, store, session):
        self.store = store
        self.session = session

    def get_global_leaderboard(self, limit=5):
        """
        Top users by points as {name, points} rows, highest first
        """
        users = self.store.get('users')
        if not users:
            return []

        rows = []
        for user_data in users.values():
            if not isinstance(user_data, dict):
                continue
            profile = user_data.get('profile') or {}
            email = profile.get('email') or ''
            name = profile.get('displayName') or profile.get('name') or (email.split('@')[0] if email else 'User')
            points = to_number(user_data.get('points')) or 0
            if float(points).is_integer():
                points = int(points)

            rows.append({'name': str(name), 'points': points})

        # Sort by points
        rows.sort(key=lambda x: x['points'], reverse=True)
        return rows[:max(0, int(limit))]

    def get_friends_leaderboard(self, limit=5):
        # No friend graph exists yet
        if not self.session.is_authenticated():
            return []
        return []
