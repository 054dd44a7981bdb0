"""
Launch the application. Connections are accepted only after the OIDC
middleware has loaded the provider configuration.
"""
import logging

from app import create_app
from config import AppConfig


def serve(app, oidc, port, listen=None):
    """
    Start OIDC discovery, wait for it to be ready, then listen on port.

    A discovery failure is reported on the middleware's error channel and
    the process keeps waiting; nothing is retried.
    """

    if listen is None:
        listen = lambda port: app.run(host='0.0.0.0', port=port, threaded=True)

    oidc.start()
    oidc.ready.wait()

    app.logger.info(f'listening on port {port}')
    listen(port)


def main():

    config = AppConfig.from_env()

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    app = create_app(config)
    serve(app, app.extensions['oidc'], config.port)


if __name__ == '__main__':
    main()
