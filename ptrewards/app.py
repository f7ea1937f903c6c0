"""
PT Rewards API - Points, stickers and rewards on Firebase Realtime Database

Flask application factory; main.py exposes it as a Firebase Cloud Function
"""

from datetime import timedelta
import logging

from flask import Flask, g, request, jsonify
from flask_cors import CORS

from ptrewards import __version__
from ptrewards.config import Config
from ptrewards.services.record_store import build_record_store
from ptrewards.services.session_holder import SessionHolder, FlaskSessionStorage, FileSessionStorage
from ptrewards.services.account_service import AccountService
from ptrewards.services.ledger_service import LedgerService
from ptrewards.services.redemption_service import RedemptionService
from ptrewards.services.admin_gateway import AdminGateway
from ptrewards.services.leaderboard_service import LeaderboardService
from ptrewards.utils.auth_middleware import require_auth, require_admin, nav_state
from ptrewards.utils.error_handler import handle_error

logger = logging.getLogger(__name__)

class Services:
    """All services bound to one store and one session"""

    def __init__(self, store, session, config):
        self.store = store
        self.session = session
        self.config = config
        self.accounts = AccountService(store, session, config)
        self.ledger = LedgerService(store, session, config)
        self.redemptions = RedemptionService(store, session, config)
        self.admin = AdminGateway(self.accounts, self.ledger, self.redemptions)
        self.leaderboard = LeaderboardService(store, session)

def build_services(config=None, store=None, session=None):
    """
    Wire services outside a request, with the session kept in SESSION_FILE
    """
    config = config or Config.from_env()
    store = store or build_record_store(config)
    session = session or SessionHolder(FileSessionStorage(config.session_file), config.session_key)
    return Services(store, session, config)

def configure_logging(level):
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO))

def _json_body():
    return request.get_json(silent=True) or {}

def create_app(config=None, store=None):
    config = config or Config.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config['SECRET_KEY'] = config.secret_key
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=365)
    app.config['CORS_ORIGINS'] = config.cors_origins
    CORS(app, origins=config.cors_origins, supports_credentials=True)

    record_store = store or build_record_store(config)

    @app.before_request
    def bind_services():
        session = SessionHolder(FlaskSessionStorage(), config.session_key)
        g.services = Services(record_store, session, config)

    # Health check endpoint
    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({
            'status': 'healthy',
            'service': 'pt-rewards',
            'version': __version__
        })

    # ============= AUTH ENDPOINTS =============

    @app.route('/auth/signup', methods=['POST'])
    def signup():
        """Register a new user and sign them in"""
        try:
            data = _json_body()
            result = g.services.accounts.sign_up(
                email=data.get('email'),
                password=data.get('password'),
                name=data.get('name')
            )
            return jsonify(result), 201
        except Exception as e:
            return handle_error(e)

    @app.route('/auth/login', methods=['POST'])
    def login():
        try:
            data = _json_body()
            result = g.services.accounts.log_in(data.get('email'), data.get('password'))
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/auth/logout', methods=['POST'])
    def logout():
        g.services.accounts.log_out()
        return jsonify({'loggedIn': False, 'redirect': config.logout_redirect})

    @app.route('/auth/nav', methods=['GET'])
    def navigation():
        """Visibility of the sign-in, logout and logged-in-only controls"""
        element_ids = [i for i in request.args.get('show', '').split(',') if i]
        return jsonify(nav_state(g.services.session, config.logout_redirect, element_ids))

    # ============= USER ENDPOINTS =============

    @app.route('/user/ensure', methods=['POST'])
    @require_auth
    def ensure_user():
        try:
            applied = g.services.accounts.ensure_account_exists()
            return jsonify({'upgraded': bool(applied), 'changes': sorted(applied)})
        except Exception as e:
            return handle_error(e)

    @app.route('/user/profile', methods=['GET'])
    @require_auth
    def get_profile():
        try:
            accounts = g.services.accounts
            return jsonify({'profile': accounts.get_profile(), 'isAdmin': accounts.is_admin()})
        except Exception as e:
            return handle_error(e)

    # ============= POINTS ENDPOINTS =============

    @app.route('/points', methods=['GET'])
    @require_auth
    def get_points():
        try:
            return jsonify({'points': g.services.ledger.get_balance()})
        except Exception as e:
            return handle_error(e)

    @app.route('/points', methods=['PUT'])
    @require_auth
    def set_points():
        try:
            data = _json_body()
            return jsonify({'points': g.services.ledger.set_balance(data.get('points'))})
        except Exception as e:
            return handle_error(e)

    @app.route('/points/add', methods=['POST'])
    @require_auth
    def add_points():
        try:
            data = _json_body()
            total = g.services.ledger.add_points(data.get('delta'), data.get('metadata'))
            return jsonify({'points': total})
        except Exception as e:
            return handle_error(e)

    @app.route('/points/history', methods=['GET'])
    @require_auth
    def points_history():
        try:
            return jsonify({'history': g.services.ledger.get_history()})
        except Exception as e:
            return handle_error(e)

    @app.route('/courses/<course_id>/complete', methods=['POST'])
    @require_auth
    def complete_course(course_id):
        """Award a course's points once"""
        try:
            data = _json_body()
            result = g.services.ledger.award_course_once(
                course_id,
                course_name=data.get('courseName'),
                points=data.get('points', 0)
            )
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/stickers', methods=['GET'])
    @require_auth
    def get_stickers():
        try:
            ledger = g.services.ledger
            return jsonify({'stickers': ledger.get_stickers(), 'unlocks': ledger.get_unlocks()})
        except Exception as e:
            return handle_error(e)

    # ============= REWARD ENDPOINTS =============

    @app.route('/rewards/redeemed', methods=['GET'])
    @require_auth
    def get_redeemed():
        try:
            return jsonify({'redeemed': g.services.redemptions.list_redemptions()})
        except Exception as e:
            return handle_error(e)

    @app.route('/rewards/<reward_id>/redeem', methods=['POST'])
    @require_auth
    def redeem_reward(reward_id):
        try:
            data = _json_body()
            result = g.services.redemptions.redeem(reward_id, data.get('cost'), data.get('rewardName'))
            return jsonify(result), 201
        except Exception as e:
            return handle_error(e)

    # ============= LEADERBOARD ENDPOINTS =============

    @app.route('/leaderboard', methods=['GET'])
    def get_leaderboard():
        try:
            limit = request.args.get('limit', 5, type=int)
            return jsonify({'entries': g.services.leaderboard.get_global_leaderboard(limit)})
        except Exception as e:
            return handle_error(e)

    @app.route('/leaderboard/friends', methods=['GET'])
    def get_friends_leaderboard():
        limit = request.args.get('limit', 5, type=int)
        return jsonify({'entries': g.services.leaderboard.get_friends_leaderboard(limit)})

    # ============= ADMIN ENDPOINTS =============

    @app.route('/admin/stickers', methods=['POST'])
    @require_admin
    def grant_sticker():
        try:
            data = _json_body()
            result = g.services.admin.grant_sticker_to_user(
                data.get('email'),
                data.get('stickerId'),
                data.get('eventName')
            )
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/admin/redemptions', methods=['GET'])
    @require_admin
    def list_all_redemptions():
        try:
            return jsonify({'redemptions': g.services.admin.admin_list_all_redemptions()})
        except Exception as e:
            return handle_error(e)

    @app.route('/admin/redemptions/<email>/<reward_id>', methods=['PATCH'])
    @require_admin
    def update_redemption_status(email, reward_id):
        try:
            data = _json_body()
            result = g.services.admin.admin_update_status(email, reward_id, data.get('status'))
            return jsonify(result)
        except Exception as e:
            return handle_error(e)

    @app.route('/admin/users/<email>/role', methods=['PUT'])
    @require_admin
    def set_role(email):
        try:
            data = _json_body()
            return jsonify(g.services.admin.set_user_role(email, data.get('role')))
        except Exception as e:
            return handle_error(e)

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    return app
