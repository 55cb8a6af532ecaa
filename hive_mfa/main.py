"""
HIVE MFA - Enrollment Walkthrough

Provisions a second factor for a throwaway account in an in-memory store,
prints the QR code to scan, then asks for a code from the authenticator
app to confirm enrollment.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .auth import InMemoryProfileStore, TwoFactorManager, render_qr_ascii, render_qr_svg
from .config import configure_logging, get_settings

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk through TOTP enrollment")
    parser.add_argument("--account", default="demo@example.com",
                        help="Account label shown in the authenticator app")
    parser.add_argument("--svg", metavar="PATH",
                        help="Also write the QR code as an SVG file")
    parser.add_argument("--attempts", type=int, default=3,
                        help="Confirmation attempts before giving up")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the enrollment walkthrough."""
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, settings.sanitize_logs)

    manager = TwoFactorManager.from_settings(InMemoryProfileStore())
    setup = manager.provision(args.account, args.account)

    print("=" * 50)
    print(f"Scan this code with your authenticator app ({settings.issuer})")
    print("=" * 50)
    print(render_qr_ascii(setup.enrollment_uri))
    print(f"Or enter the key manually: {setup.secret_base32}\n")

    if args.svg:
        with open(args.svg, "w", encoding="utf-8") as f:
            f.write(render_qr_svg(setup.enrollment_uri))
        print(f"QR code written to {args.svg}\n")

    for _ in range(args.attempts):
        try:
            code = input("Enter the 6-digit code: ")
        except (EOFError, KeyboardInterrupt):
            print("\nEnrollment aborted.")
            return 1
        result = manager.confirm(args.account, code)
        if result.enabled:
            break
        print(f"  Not accepted ({result.error.value}), try again.")
    else:
        logger.warning("Enrollment not confirmed after %d attempts", args.attempts)
        return 1

    print("\nTwo-factor enabled. Store these backup codes somewhere safe:")
    for backup_code in setup.backup_codes:
        print(f"  {backup_code}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
