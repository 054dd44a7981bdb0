import logging
import threading

import requests as req

from .JWKS import Jwks


log = logging.getLogger(__name__)


class   OidcDiscover:
    """
    OidcDiscover - discover OIDC configuration and JWK signing keys

    discov = OidcDiscover(issuer, timeout)

        Autodiscover OIDC endpoints from the issuer's well-known document
        issuer - issuer URI, discovery is at issuer/.well-known/openid-configuration
        timeout - timeout for config retrieval (def: 4 Seconds)

    Discovery runs on a background thread (start()). The `ready` event is
    set once it completes; failures are reported to the 'error' handlers.
    """

    lifecycle_events = ('ready', 'error')

    def __init__(self, issuer, timeout = 4):

        self.issuer = issuer.rstrip('/')
        self.discovery_url = self.issuer + '/.well-known/openid-configuration'
        self.discovery_complete = False
        self.timeout = timeout

        self.ready = threading.Event()
        self.handlers = {event: [] for event in self.lifecycle_events}
        self._thread = None


    @property
    def logger(self):
        return log


    def on(self, event, f=None):
        """
        oidc.on('ready', fn) / @oidc.on('error')

        Register a lifecycle handler. 'ready' handlers get no arguments,
        'error' handlers get the exception.
        """

        if event not in self.handlers:
            raise ValueError(f'unknown OIDC lifecycle event "{event}"')

        def _register(f):
            self.handlers[event].append(f)
            return f

        return _register(f) if f else _register


    def emit(self, event, *args):
        """ Run the handlers for a lifecycle event. """

        if event == 'ready':
            if self.ready.is_set():
                return
            self.ready.set()

        for handler in self.handlers[event]:
            try:
                handler(*args)
            except Exception:
                self.logger.exception(f'OIDC: "{event}" handler failed')


    def start(self):
        """ Begin discovery on a background thread. """

        if self._thread is None:
            self._thread = threading.Thread(
                target=self._discover_background,
                name='oidc-discovery',
                daemon=True
            )
            self._thread.start()
        return self._thread


    def _discover_background(self):

        try:
            self.discover()
        except Exception as e:
            self.emit('error', e)
        else:
            self.emit('ready')


    def discover(self, url=None):
        """Retrieve OIDC autodiscovery to configure authorizer."""

        if url is None:
            url = self.discovery_url

        self.logger.info(f'OIDC: initiating autodiscovery on "{url}"')

        try:
            discovery_config = req.get(url, timeout=self.timeout).json()
            if 'error' in discovery_config:
                raise Exception(discovery_config.get('error_description', discovery_config['error']))

            self.issuer = discovery_config['issuer']
            self.auth_url = discovery_config['authorization_endpoint']
            self.token_url = discovery_config['token_endpoint']
            self.userinfo_url = discovery_config.get('userinfo_endpoint')

            self.jwks_uri = discovery_config.get('jwks_uri')
            self.scopes_supported = discovery_config.get('scopes_supported', [])

        except Exception:
            self.logger.error(f'OIDC: autodiscovery FAILED using "{url}"')
            raise

        self.jwks = Jwks(self.jwks_uri, timeout=self.timeout, logger=self.logger)
        self.discovery_complete = True

        self.logger.info('OIDC: autodiscovery completed')
