"""Time-based one-time password generation and verification."""

import pyotp
import structlog

from review_api.models.auth import TwoFactorSecret

logger = structlog.get_logger(__name__)

SECRET_LENGTH = 32
DEFAULT_VALID_WINDOW = 2


class TotpService:
    """Wraps pyotp with the issuer name and clock-drift window in one place."""

    def __init__(self, issuer: str, valid_window: int = DEFAULT_VALID_WINDOW):
        self.issuer = issuer
        self.valid_window = valid_window

    def generate_secret(self, email: str) -> TwoFactorSecret:
        """Create a random base32 secret and its provisioning URI.

        Args:
            email: Account name shown by the authenticator app

        Returns:
            TwoFactorSecret with the secret and an ``otpauth://`` URL
        """
        secret = pyotp.random_base32(length=SECRET_LENGTH)
        uri = pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=self.issuer)
        return TwoFactorSecret(secret=secret, qr_code_url=uri)

    def verify(self, secret: str, code: str) -> bool:
        """Check a 6-digit code within +/- ``valid_window`` time steps.

        A malformed secret never verifies.
        """
        code = code.strip().replace(" ", "")
        if not code.isdigit():
            return False
        try:
            return pyotp.TOTP(secret).verify(code, valid_window=self.valid_window)
        except ValueError:
            # binascii.Error from base32 decoding subclasses ValueError
            logger.warning("totp_secret_malformed")
            return False
