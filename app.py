"""
TC3 Rewards: coffee supplier storefront for workforce identity (WIAM).

Demonstrates single sign-on with Okta as the identity provider. The
application is registered in the Okta org as an OIDC web application.
"""
import logging

from flask import Flask, g, redirect, render_template, request, session
from flask_session import Session

from WorkforceOIDC.WorkforceOIDC import WorkforceOIDC
from WorkforceOIDC.flask_utils import response_nocache

import storefront


def create_app(config, oidc=None):
    """
    app = create_app(AppConfig.from_env())

    Composition root: sessions, the OIDC middleware, then the app routes.
    Pass `oidc` to use an already constructed middleware.
    """

    app = Flask(__name__, static_folder='static', static_url_path='')
    app.config.from_mapping(config.session_config)

    if config.debug:
        app.logger.setLevel(logging.DEBUG)

    Session(app)

    if oidc is None:
        oidc = WorkforceOIDC(config.oidc_config, app=app, start=False)
    else:
        app.register_blueprint(oidc)

    @oidc.on('error')
    def oidc_error(err):
        app.logger.error(f'OIDC middleware error: {err}')

    oidc.on('ready', lambda: app.logger.info('OIDC middleware ready'))

    app.extensions['oidc'] = oidc

    @app.route('/')
    def home():
        """ Landing page, four random coffees and a discount. """

        app.logger.debug(f'/ requested from {request.remote_addr}')

        page = render_template('home.html', **storefront.landing_context(g.user_context))
        return response_nocache(page)

    #
    # Local logout: the application session is destroyed, the Okta session
    # stays, so logging in again does not prompt for credentials.
    #
    @app.route('/logout')
    def logout():
        """ Logout """

        clear_session()
        return redirect('/')

    return app


def clear_session():
    """
    Remove every key from the current session, tokens included. An empty
    modified session is dropped from the store and its cookie deleted.
    """

    session.clear()
    session.modified = True
