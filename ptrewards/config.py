"""
Configuration for PT Rewards
Reads settings from the environment, optionally seeded from a .env file
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "https://proid-125a9-default-rtdb.asia-southeast1.firebasedatabase.app"


def _env_int(name, default):
    raw = os.environ.get(name, '').strip()
    return int(raw) if raw else default


def _env_float(name):
    raw = os.environ.get(name, '').strip()
    return float(raw) if raw else None


@dataclass
class Config:
    database_url: str = DEFAULT_DATABASE_URL
    store_backend: str = 'rest'
    credentials_path: str = './serviceAccountKey.json'
    database_auth_token: str = ''
    store_timeout: Optional[float] = None

    default_points: int = 50
    sticker_points: int = 10
    certificate_threshold: int = 3
    all_collected_threshold: int = 4
    min_password_length: int = 4

    session_key: str = 'currentUserEmail'
    session_file: str = '~/.pt_rewards/session.json'
    secret_key: str = 'dev-secret-key'
    logout_redirect: str = 'login.html'

    allowed_origins: str = '*'
    report_timezone: str = 'Asia/Singapore'
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, dotenv_path=None):
        """
        Build a Config from environment variables (a .env file is loaded first if present)
        """
        load_dotenv(dotenv_path)

        return cls(
            database_url=os.environ.get('FIREBASE_DATABASE_URL', DEFAULT_DATABASE_URL).rstrip('/'),
            store_backend=os.environ.get('STORE_BACKEND', 'rest').strip().lower(),
            credentials_path=os.environ.get('GOOGLE_APPLICATION_CREDENTIALS', './serviceAccountKey.json'),
            database_auth_token=os.environ.get('DATABASE_AUTH_TOKEN', ''),
            store_timeout=_env_float('STORE_TIMEOUT'),
            default_points=_env_int('DEFAULT_POINTS', 50),
            sticker_points=_env_int('STICKER_POINTS', 10),
            certificate_threshold=_env_int('CERTIFICATE_THRESHOLD', 3),
            all_collected_threshold=_env_int('ALL_COLLECTED_THRESHOLD', 4),
            min_password_length=_env_int('MIN_PASSWORD_LENGTH', 4),
            session_key=os.environ.get('SESSION_KEY', 'currentUserEmail'),
            session_file=os.environ.get('SESSION_FILE', '~/.pt_rewards/session.json'),
            secret_key=os.environ.get('SECRET_KEY', 'dev-secret-key'),
            logout_redirect=os.environ.get('LOGOUT_REDIRECT', 'login.html'),
            allowed_origins=os.environ.get('ALLOWED_ORIGINS', '*'),
            report_timezone=os.environ.get('REPORT_TIMEZONE', 'Asia/Singapore'),
            log_level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
        )

    @property
    def cors_origins(self):
        origins = [o.strip() for o in self.allowed_origins.split(',') if o.strip()]
        return origins or ['*']
