"""
Ledger Service for PT Rewards
Handles the points balance, the audit history, one-time course awards
and sticker collection with threshold unlocks
"""

import math
import uuid
import logging

from ptrewards.services.key_codec import check_child_key, user_path
from ptrewards.utils.error_handler import NotAuthenticatedError, MissingIdentifierError
from ptrewards.utils.timestamps import now_ms
from ptrewards.utils.validators import clean_text, clamp_points, to_number

logger = logging.getLogger(__name__)

UNLOCK_CERTIFICATE = 'certificate'
UNLOCK_ALL_COLLECTED = 'allCollected'

class LedgerService:
    """
    Every update here is a read-modify-write over separate round trips.
    Concurrent updates for the same user can lose a delta; nothing is rolled
    back when a later step of a chain fails.
    """

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

    def _new_log_id(self):
        return f"{self.clock()}_{uuid.uuid4().hex[:12]}"

    # ---------- balance ----------

    def balance_for(self, key):
        """
        Read a user's balance, resetting it to the default when missing or invalid
        """
        points = to_number(self.store.get(user_path(key, 'points')))
        if points is not None and points >= 0:
            return math.floor(points)

        logger.warning(f"Invalid balance for {key}, resetting to {self.config.default_points}")
        self.store.put(user_path(key, 'points'), self.config.default_points)
        return self.config.default_points

    def set_balance_for(self, key, value):
        safe = clamp_points(value)
        self.store.put(user_path(key, 'points'), safe)
        return safe

    def add_points_for(self, key, delta, metadata=None):
        """
        Add a non-negative delta to a user's balance and append a history entry.
        Returns the new balance; non-positive deltas write nothing.
        """
        add = clamp_points(delta)
        if add <= 0:
            return self.balance_for(key)

        current = self.balance_for(key)
        next_balance = current + add
        self.set_balance_for(key, next_balance)

        log_id = self._new_log_id()
        self.store.put(user_path(key, 'pointsHistory', log_id), {
            'delta': add,
            'balanceAfter': next_balance,
            'metadata': metadata or {},
            'timestamp': self.clock()
        })

        logger.info(f"Added {add} points to {key}: {current} -> {next_balance}")
        return next_balance

    def get_balance(self):
        return self.balance_for(self._require_key())

    def set_balance(self, value):
        """Overwrite the signed-in user's balance (last write wins)"""
        return self.set_balance_for(self._require_key(), value)

    def add_points(self, delta, metadata=None):
        return self.add_points_for(self._require_key(), delta, metadata)

    def get_history(self):
        """
        Points history of the signed-in user, oldest first
        """
        key = self._require_key()
        history = self.store.get(user_path(key, 'pointsHistory')) or {}

        entries = [dict(entry, id=log_id) for log_id, entry in history.items() if isinstance(entry, dict)]
        entries.sort(key=lambda x: (to_number(x.get('timestamp')) or 0, x['id']))
        return entries

    # ---------- courses ----------

    def award_course_once(self, course_id, course_name=None, points=0):
        """
        Award points for a completed course, at most once per course id.

        The completion marker is checked and written in separate round trips,
        so concurrent calls for one course can both award.
        """
        key = self._require_key()

        course_id = clean_text(course_id)
        if not course_id:
            raise MissingIdentifierError("Missing courseId", field='courseId')
        check_child_key(course_id, 'courseId')
        course_name = clean_text(course_name) or course_id

        already = self.store.get(user_path(key, 'coursesCompleted', course_id))
        if isinstance(already, dict) and already.get('completed'):
            return {'awarded': False, 'total': self.balance_for(key)}

        total = self.add_points_for(key, points, {
            'source': 'short_course',
            'courseId': course_id,
            'courseName': course_name
        })

        self.store.put(user_path(key, 'coursesCompleted', course_id), {
            'completed': True,
            'courseName': course_name,
            'pointsAwarded': clamp_points(points),
            'completedAt': self.clock()
        })

        logger.info(f"Awarded course {course_id} to {key}")
        return {'awarded': True, 'total': total}

    # ---------- stickers ----------

    def get_stickers(self):
        key = self._require_key()
        return self.store.get(user_path(key, 'stickers')) or {}

    def get_unlocks(self):
        key = self._require_key()
        return self.store.get(user_path(key, 'unlocks')) or {}

    def collect_sticker(self, key, sticker_id, event_name, verified_by):
        """
        Record a sticker for a user, grant the sticker points and set any unlocks
        the new unique count reaches. A sticker already held is left untouched.

        Callers are responsible for validating the ids and the caller's role.
        """
        existing = self.store.get(user_path(key, 'stickers', sticker_id))
        if existing:
            return {'ok': True, 'duplicate': True}

        self.store.put(user_path(key, 'stickers', sticker_id), {
            'collectedAt': self.clock(),
            'eventName': event_name,
            'verifiedBy': verified_by
        })

        stickers = self.store.get(user_path(key, 'stickers')) or {}
        unique_count = len(stickers)

        total = self.add_points_for(key, self.config.sticker_points, {
            'source': 'sticker',
            'stickerId': sticker_id,
            'eventName': event_name,
            'verifiedBy': verified_by
        })

        unlocks = {}
        if unique_count >= self.config.certificate_threshold:
            unlocks[UNLOCK_CERTIFICATE] = True
        if unique_count >= self.config.all_collected_threshold:
            unlocks[UNLOCK_ALL_COLLECTED] = True
        if unlocks:
            self.store.patch(user_path(key, 'unlocks'), unlocks)

        logger.info(f"Sticker {sticker_id} collected by {key} ({unique_count} unique)")
        return {
            'ok': True,
            'duplicate': False,
            'uniqueCount': unique_count,
            'total': total,
            'unlocked': sorted(unlocks)
        }
