import time
from urllib.parse import urlencode

import requests as req
from flask import (
        Blueprint,
        current_app,
        g,
        request,
        session,
        redirect,
    )

from WorkforceOIDC.oidc_discover import OidcDiscover
from WorkforceOIDC.oidc_state import OIDCstate
from WorkforceOIDC.flask_utils import (
        UnauthorizedError,
        BadRequestError,
        ServiceUnavailableError,
        safe_next,
    )

default_oidc_scope = 'openid profile'
callback_path = '/authorization-code/callback'

now = lambda : int(time.time())


class OIDCError(Exception):
    """ Failure talking to the identity provider or validating its answer. """


class WorkforceOIDC(OidcDiscover, Blueprint):
    """
    oidc = WorkforceOIDC(config, app=app)

    OIDC relying party for Flask, authorization code flow.

    config:
        issuer          - provider issuer URI (discovery is issuer/.well-known/...)
        client_id       - client registered with the provider
        client_secret   - the client's secret
        app_base_url    - external base URL of this app, the redirect URI is
                          app_base_url/authorization-code/callback
        scope           - requested scope (def: 'openid profile')

    Routes /login and /authorization-code/callback are mounted on the app.
    After login every request sees g.user_context ({'userinfo', 'tokens'}
    or None). Logging out is left to the app: clearing the session is a
    local logout, the provider session is not touched.

    Discovery starts on a background thread; register 'ready' and 'error'
    handlers with oidc.on(), or wait on oidc.ready.
    """

    def __init__( self,
            config,
            sess_userinfo = 'userinfo',
            app=None,
            start=True,
        ):

        self.client_id = config['client_id']
        self.client_secret = config['client_secret']
        self.scopes = config.get('scope', default_oidc_scope).split()
        self.redirect_uri = config['app_base_url'].rstrip('/') + callback_path

        self.token_name = 'tokens'
        self.sess_userinfo = sess_userinfo
        self.sess_state = 'oidc_state'
        self._app_logger = None

        timeout = config.get('timeout', 4)
        super().__init__(config['issuer'], timeout=timeout)

        self.state = OIDCstate(key=config.get('state_key'), ttl=config.get('state_ttl', 300))

        # make this a blueprint
        Blueprint.__init__(self, name='oidc', import_name=__name__)

        self.add_url_rule('/login', endpoint='login', view_func=self._login)

        # receives code grant redirect from IdP via client
        self.add_url_rule(
            callback_path,
            endpoint='callback',
            view_func=self._finish_oauth_login
        )

        self.before_app_request(self._load_user_context)
        self.record_once(self._bind_app)

        self.login_hooks = [self._id_token_hook]

        if app:
            # app was specified - install ourself as a blueprint
            app.register_blueprint(self)

        if start:
            self.start()


    def _bind_app(self, state):

        self._app_logger = state.app.logger


    @property
    def logger(self):

        return self._app_logger if self._app_logger else super().logger


    @property
    def is_authenticated(self):
        """ True if the session holds tokens from a completed login. """

        return bool(session.get(self.token_name))


    @property
    def user_context(self):
        """ Identity of the current session, or None. """

        if not self.is_authenticated:
            return None

        return {
            'userinfo': session.get(self.sess_userinfo, {}),
            'tokens': session[self.token_name],
        }


    def _load_user_context(self):

        g.user_context = self.user_context


    # route: /login
    def _login(self):

        return self.initiate_login(next=request.args.get('next'))


    def initiate_login(self, next=None):
        """ Initiate an OIDC login. (return a redirect.) """

        if not self.ready.is_set():
            return ServiceUnavailableError('OIDC: provider configuration not loaded')

        state = self.state.create(next=safe_next(next))
        serial = self.state.serial(state)

        # single use, bound to this browser
        session[self.sess_state] = {'state': serial, 'nonce': state['nonce']}

        params = {
            'client_id' : self.client_id,
            'response_type' : 'code',
            'redirect_uri' : self.redirect_uri,
            'response_mode': 'query',
            'scope' : ' '.join(self.scopes),
            'state' : serial,
            'nonce' : state['nonce'],
        }

        for hint in ('login_hint', 'prompt'):
            if request.args.get(hint):
                params.update({hint: request.args.get(hint)})

        return redirect(self.auth_url + '?' + urlencode(params))


    def _fail(self, msg, exc=None):
        """ Report a login failure on the error channel. """

        self.logger.info(msg)
        self.emit('error', exc if exc else OIDCError(msg))


    # route: /authorization-code/callback
    def _finish_oauth_login(self):
        """ Callback Route: Complete login by obtaining id and access tokens. """

        pending = session.pop(self.sess_state, None)

        if 'error' in request.args:
            msg = f'OIDC: AuthNZ error: {request.args.get("error_description", request.args["error"])}'
            self._fail(msg)
            return BadRequestError(msg)

        try:
            returned = request.args.get('state')
            if not pending or pending.get('state') != returned:
                raise ValueError('state not issued to this session')

            # Validate and deserialize state
            state = self.state.deserial(returned)

        except ValueError as e:
            self._fail(f'OIDC: authentication request was not outstanding: {str(e)}', e)
            return BadRequestError('OIDC: Authentication request was not outstanding')

        code = request.args.get('code')
        if not code:
            self._fail('OIDC: callback without authorization code')
            return BadRequestError('OIDC: Missing authorization code')

        try:
            tokens = self._exchange_code(code)
            claims = self._verify_id_token(tokens['id_token'], state.get('nonce'))
            userinfo = self._fetch_userinfo(tokens, claims)

        except Exception as e:
            self._fail(f'Error: OIDC: token acquisition failed: {str(e)}', e)
            return UnauthorizedError('OIDC: Error acquiring id token')

        tokens['expires_at'] = now() + int(tokens.get('expires_in', 0))
        session[self.token_name] = tokens
        session[self.sess_userinfo] = userinfo

        # new session id once authenticated
        current_app.session_interface.regenerate(session)

        username = userinfo.get('name', userinfo.get('sub', 'Authenticated User'))
        self.logger.info(f'OIDC: User "{username}" authenticated')

        return redirect(safe_next(state.get('next')))


    def _exchange_code(self, code):
        """ Exchange the authorization code for tokens. """

        params = {
            'client_id' : self.client_id,
            'client_secret' : self.client_secret,
            'grant_type' : 'authorization_code',
            'code': code,
            'redirect_uri' : self.redirect_uri,
        }

        self.logger.debug(f'OIDC: exchanging code {code[:6]}... for tokens')
        tokens = req.post(self.token_url, data=params, timeout=self.timeout).json()

        if 'error' in tokens:
            raise OIDCError(f'error exchanging code for tokens: {tokens.get("error_description", tokens["error"])}')

        if 'id_token' not in tokens:
            raise OIDCError('no id token in token response')

        return tokens


    def _verify_id_token(self, id_token, nonce):
        """ Verify signature, audience, issuer and nonce of the id token. """

        idtok = self.jwks.decode(id_token, audience=self.client_id, issuer=self.issuer)

        if idtok is None:
            raise OIDCError('failed to verify id token')

        if idtok.get('nonce') != nonce:
            raise OIDCError('id token nonce does not match the login request')

        return idtok


    def _fetch_userinfo(self, tokens, claims):
        """ Userinfo from the provider, or the id token's claims without one. """

        if not self.userinfo_url:
            userinfo = dict(claims)
            for login_hook in self.login_hooks:
                userinfo = login_hook(userinfo)
            return userinfo

        resp = req.get(
            self.userinfo_url,
            headers={'Authorization': f'Bearer {tokens["access_token"]}'},
            timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()


    def _id_token_hook(self, claims):
        """ Remove protocol claims, keep the identity claims. """

        for key in ['aud', 'iss', 'iat', 'nbf', 'exp', 'nonce', 'at_hash', 'auth_time', 'amr', 'idp', 'jti', 'ver']:
            if key in claims: del claims[key]

        return claims
