"""
Jwks - retrieve provider signing keys and verify/decode ID tokens

"""
import json
import logging

import jwt
import requests as req


class   Jwks:

    def __init__(self, url=None, timeout=4, logger=None):
        """
        jwks = Jwks(url, timeout)

        Keys are obtained from url on object instantiation
            url - points to jwks json object
            timeout - for retrieving url (def 4 sec)

        """

        self.url = url
        self.timeout = timeout
        self.logger = logger if logger else logging.getLogger(__name__)

        if url:
            self.pub_keys = self._load_jwks(url)
        else:
            self.pub_keys = {}


    def _load_jwks(self, url):
        """ Load keys from public endpoint. """

        self.logger.info(f'OIDC: loading JWKS from {url}')
        pub_keys = {}
        try:
            jwks_config = req.get(url, timeout=self.timeout).json()

            if 'keys' not in jwks_config:
                raise Exception('no keys in jwks')

            for jwk in jwks_config['keys']:
                # RSA signature keys only
                if jwk['kty'] == 'RSA' and jwk.get('use', 'sig') == 'sig':
                    pub_keys[jwk['kid']] = jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(jwk))

        except Exception as e:
            self.logger.error(f'OIDC: loading JWKS failed: {str(e)}')
            raise

        self.logger.info(f'OIDC: JWKS loading completed: {len(pub_keys)} keys loaded')
        return pub_keys


    def decode(self, token, options=None, **kwargs):
        """
        jwks.decode(token, **kwargs)

            Verifies and decodes token with PyJWT parameters/options.
            Returns payload on success, None on failure
        """

        try:
            kid = jwt.get_unverified_header(token).get('kid')

            if kid in self.pub_keys:
                try:
                    return jwt.decode(
                        token,
                        key=self.pub_keys[kid],
                        algorithms=['RS256'],
                        options=options or {},
                        **kwargs
                    )

                except jwt.InvalidTokenError as e:
                    self.logger.info(f'OIDC: token verify/decode failed: {str(e)}')
            else:
                self.logger.info(f'OIDC: can not verify: public key with KID {kid} has not been loaded')

        except jwt.DecodeError as e:
            self.logger.info(f'OIDC: bad token: {str(e)}')

        return None
