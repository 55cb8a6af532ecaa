"""
Authenticator enrollment helpers.

Builds the otpauth:// URI consumed by authenticator apps and renders it
as a QR code for scanning.

URI format:
    otpauth://totp/{issuer}:{label}?secret=...&issuer=...&algorithm=SHA1&digits=6&period=30

The query parameter set and order are fixed; some apps are picky about
both.
"""

from io import StringIO
from urllib.parse import quote

import qrcode
from qrcode.constants import ERROR_CORRECT_L
from qrcode.image.svg import SvgPathImage

from .totp import TOTP_ALGORITHM, TOTP_DIGITS, TOTP_TIME_STEP


DEFAULT_ISSUER = 'HIVE'


def build_enrollment_uri(secret_base32: str, account_label: str,
                         issuer: str = DEFAULT_ISSUER,
                         digits: int = TOTP_DIGITS,
                         period: int = TOTP_TIME_STEP) -> str:
    """
    Generate the otpauth:// enrollment URI.

    Args:
        secret_base32: Unpadded Base32 secret
        account_label: Account shown in the app (usually the email)
        issuer: Service name shown in the app
        digits: Number of digits in OTP
        period: Time step in seconds

    Returns:
        otpauth:// URI string
    """
    issuer_enc = quote(issuer, safe='')
    label = f"{issuer_enc}:{quote(account_label, safe='')}"
    params = (
        ('secret', secret_base32),
        ('issuer', issuer_enc),
        ('algorithm', TOTP_ALGORITHM),
        ('digits', str(digits)),
        ('period', str(period)),
    )
    query = '&'.join(f"{key}={value}" for key, value in params)
    return f"otpauth://totp/{label}?{query}"


def _make_qr(uri: str) -> qrcode.QRCode:
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_L,
        box_size=10,
        border=4,
    )
    qr.add_data(uri)
    qr.make(fit=True)
    return qr


def render_qr_ascii(uri: str) -> str:
    """Render the URI as a terminal-printable QR code."""
    out = StringIO()
    _make_qr(uri).print_ascii(out=out)
    return out.getvalue()


def render_qr_svg(uri: str) -> str:
    """Render the URI as an SVG document string."""
    img = _make_qr(uri).make_image(image_factory=SvgPathImage)
    return img.to_string(encoding='unicode')
