"""
Record Store for PT Rewards
Path-addressed get/put/patch over the Firebase Realtime Database JSON tree
"""

import os
import logging

import requests
import firebase_admin
from firebase_admin import credentials, db as rtdb, exceptions as firebase_exceptions

from ptrewards.utils.error_handler import StoreReadError, StoreWriteError

logger = logging.getLogger(__name__)

class RecordStore:
    """
    Interface over a hierarchical JSON document store.
    No transactions, no compare-and-swap: every call is one round trip.
    """

    def get(self, path):
        raise NotImplementedError

    def put(self, path, value):
        raise NotImplementedError

    def patch(self, path, value):
        raise NotImplementedError

class RestRecordStore(RecordStore):
    """
    Talks to the database REST API: GET/PUT/PATCH <root>/<path>.json
    """

    def __init__(self, database_url, auth_token='', timeout=None, session=None):
        self.database_url = database_url.rstrip('/')
        self.auth_token = auth_token
        self.timeout = timeout
        self.http = session or requests.Session()

    def _url(self, path):
        return f"{self.database_url}/{str(path).strip('/')}.json"

    def _params(self):
        return {'auth': self.auth_token} if self.auth_token else None

    def get(self, path):
        try:
            response = self.http.get(self._url(path), params=self._params(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"DB read of '{path}' failed: {str(e)}")
            raise StoreReadError(f"DB read failed ({str(e)})") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"DB read of '{path}' returned {response.status_code}")
            raise StoreReadError(f"DB read failed ({response.status_code})", status=response.status_code)

        return response.json()

    def put(self, path, value):
        return self._write('PUT', 'write', path, value)

    def patch(self, path, value):
        return self._write('PATCH', 'patch', path, value)

    def _write(self, method, verb, path, value):
        try:
            response = self.http.request(
                method,
                self._url(path),
                params=self._params(),
                json=value,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"DB {verb} of '{path}' failed: {str(e)}")
            raise StoreWriteError(f"DB {verb} failed ({str(e)})") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"DB {verb} of '{path}' returned {response.status_code}")
            raise StoreWriteError(f"DB {verb} failed ({response.status_code})", status=response.status_code)

        return response.json()

class AdminRecordStore(RecordStore):
    """
    Uses firebase-admin database references with service account credentials
    """

    def __init__(self, app=None):
        self.app = app

    def _ref(self, path):
        return rtdb.reference('/' + str(path).strip('/'), app=self.app)

    @staticmethod
    def _status_of(error):
        response = getattr(error, 'http_response', None)
        return getattr(response, 'status_code', None)

    def get(self, path):
        try:
            return self._ref(path).get()
        except firebase_exceptions.FirebaseError as e:
            status = self._status_of(e)
            logger.error(f"DB read of '{path}' failed: {str(e)}")
            raise StoreReadError(f"DB read failed ({status})", status=status) from e

    def put(self, path, value):
        try:
            self._ref(path).set(value)
        except firebase_exceptions.FirebaseError as e:
            status = self._status_of(e)
            logger.error(f"DB write of '{path}' failed: {str(e)}")
            raise StoreWriteError(f"DB write failed ({status})", status=status) from e
        return value

    def patch(self, path, value):
        # update() rejects an empty mapping
        if not value:
            return value
        try:
            self._ref(path).update(value)
        except firebase_exceptions.FirebaseError as e:
            status = self._status_of(e)
            logger.error(f"DB patch of '{path}' failed: {str(e)}")
            raise StoreWriteError(f"DB patch failed ({status})", status=status) from e
        return value

def initialize_firebase(config):
    """
    Initialize the default firebase-admin app once, pointed at the configured database
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        options = {'databaseURL': config.database_url}
        cred_path = os.path.expanduser(config.credentials_path or '')
        if cred_path and os.path.exists(cred_path):
            # For local development, use service account key
            app = firebase_admin.initialize_app(credentials.Certificate(cred_path), options)
        else:
            # Use default credentials in production
            app = firebase_admin.initialize_app(options=options)
        logger.info(f"Initialized Firebase app for {config.database_url}")
        return app

def build_record_store(config):
    """
    Create the record store selected by STORE_BACKEND
    """
    if config.store_backend == 'admin':
        return AdminRecordStore(initialize_firebase(config))
    if config.store_backend == 'rest':
        return RestRecordStore(
            config.database_url,
            auth_token=config.database_auth_token,
            timeout=config.store_timeout
        )
    raise ValueError(f"Unknown store backend: {config.store_backend}")
