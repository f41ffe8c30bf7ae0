"""
Issue a development access token for calling the QSuite API locally.

The token is signed with JWT_SECRET from the environment / .env, so the running
service accepts it as if it came from the auth backend.

Usage examples:
  python scripts/issue_dev_token.py --user-id 3f2a... --email qa@example.com
  python scripts/issue_dev_token.py --user-id dev-user --minutes 480
"""

from __future__ import annotations

import argparse
import sys

from qsuite.config.settings import settings
from qsuite.core.security import create_access_token


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Issue a QSuite development access token")
    parser.add_argument("--user-id", required=True, help="Subject (user id) of the token")
    parser.add_argument("--email", default=None, help="Optional email claim")
    parser.add_argument("--minutes", type=int, default=settings.access_token_expire_minutes,
                        help="Lifetime in minutes")
    args = parser.parse_args(argv)

    if not settings.jwt_secret:
        print("JWT_SECRET is not configured; set it in the environment or .env", file=sys.stderr)
        return 1

    token = create_access_token(args.user_id, email=args.email, expires_minutes=args.minutes)
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
