import json
import secrets

from cryptography.fernet import Fernet, InvalidToken


class OIDCstate:
    """
    Serializes (json), Fernet encrypts, decrypts, and deserializes the
    login state round-tripped through the provider: the post-login
    destination and the nonce expected in the ID token.
    """

    def __init__(self, key=None, ttl=300):

        self.key = key if key else Fernet.generate_key()
        self.ttl = ttl
        self.f = Fernet(self.key)


    def create(self, next='/'):
        """ New login state with a fresh nonce. """

        return {
            'next': next,
            'nonce': secrets.token_urlsafe(16),
        }


    def serial(self, state):
        """
        Serialize
            - json serialize state
            - Fernet encrypt and return as string
        """

        bdat = json.dumps(state).encode('utf-8')
        return self.f.encrypt(bdat).decode()


    def deserial(self, bdat):
        """
        Deserialize
            - Fernet decrypt and validate TTL against replay
            - deserialize json

        Raises ValueError for missing, tampered or expired state.
        """
        if not bdat:
            raise ValueError('state missing')

        if type(bdat) is str:
            bdat = bdat.encode('utf-8')

        try:
            jdat = self.f.decrypt(bdat, ttl=self.ttl)
        except InvalidToken:
            raise ValueError('state invalid or expired')

        return json.loads(jdat)
