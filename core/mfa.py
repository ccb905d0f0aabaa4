# core/mfa.py
"""
TOTP helpers for the optional second factor.
"""
import base64
import io

import pyotp
import qrcode

from config import settings

# Accept the previous and next 30s step as well as the current one
VALID_WINDOW = 1


def generate_mfa_secret() -> str:
    """Fresh base32 TOTP seed."""
    return pyotp.random_base32()


def provisioning_uri(secret: str, email: str) -> str:
    """otpauth:// URI labelled with the account email and the app issuer."""
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=settings.MFA_ISSUER)


def qr_code_data_url(uri: str) -> str:
    """Render a provisioning URI as a PNG data URL for authenticator apps."""
    image = qrcode.make(uri)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def verify_totp(secret: str | None, token: str | None) -> bool:
    """Check a 6-digit code against the secret, tolerating one step of clock skew."""
    if not secret or not token:
        return False
    token = token.strip().replace(" ", "")
    if not token.isdigit():
        return False
    return pyotp.TOTP(secret).verify(token, valid_window=VALID_WINDOW)
