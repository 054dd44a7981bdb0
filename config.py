"""
Application configuration, read once from the environment.

    APP_PORT            port to listen on (def 8081)
    OKTA_ORG_URI        full URI of the Okta org, https://...
    OKTA_CLIENT_ID      client id of the application registered in the org
    OKTA_CLIENT_SECRET  the client's secret
    SESSION_SECRET      session signing secret (optional)
    SESSION_DIR         server-side session store directory (def ./.cache)
    DEBUG               debug logging when set
"""
import os
from datetime import timedelta

from cachelib import FileSystemCache

default_port = 8081
default_session_secret = 'not-so-random-but-this-is-an-example'
session_cookie_name = 'tc3-rewards-sid'


class AppConfig:

    def __init__(self,
            org_uri='',
            client_id='',
            client_secret='',
            port=default_port,
            session_secret=default_session_secret,
            session_dir='./.cache',
            debug=False,
        ):

        self.org_uri = org_uri
        self.client_id = client_id
        self.client_secret = client_secret
        self.port = port
        self.session_secret = session_secret
        self.session_dir = session_dir
        self.debug = debug
        self._session_cache = None


    @classmethod
    def from_env(cls, environ=None):
        """ Build the configuration from environment variables. """

        if environ is None:
            environ = os.environ

        return cls(
            org_uri=environ.get('OKTA_ORG_URI', ''),
            client_id=environ.get('OKTA_CLIENT_ID', ''),
            client_secret=environ.get('OKTA_CLIENT_SECRET', ''),
            port=int(environ.get('APP_PORT') or default_port),
            session_secret=environ.get('SESSION_SECRET') or default_session_secret,
            session_dir=environ.get('SESSION_DIR', './.cache'),
            debug=environ.get('DEBUG', '').lower() in ('1', 'true', 'yes', 'on'),
        )


    @property
    def app_base_url(self):

        return f'http://localhost:{self.port}'


    @property
    def oidc_config(self):

        return {
            'issuer': self.org_uri,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
            'app_base_url': self.app_base_url,
            'scope': 'openid profile',
        }


    @property
    def session_cache(self):
        """ Server-side session store, created on first use. """

        if self._session_cache is None:
            self._session_cache = FileSystemCache(cache_dir=self.session_dir, threshold=500)
        return self._session_cache


    @property
    def session_config(self):

        return {
            'SECRET_KEY': self.session_secret,
            'SESSION_TYPE': 'cachelib',
            'SESSION_CACHELIB': self.session_cache,
            'SESSION_PERMANENT': True,
            'PERMANENT_SESSION_LIFETIME': timedelta(hours=8),
            'SESSION_COOKIE_NAME': session_cookie_name,
            'SESSION_COOKIE_HTTPONLY': True,
            # served over plain http on localhost
            'SESSION_COOKIE_SECURE': False,
        }
