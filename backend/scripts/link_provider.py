#!/usr/bin/env python
"""Link a user to a fitness platform.

Creates the user if needed and stores (or replaces) their access token
for one platform. Obtaining the token through the platform's OAuth flow
happens elsewhere.

Usage:
    cd backend
    uv run python -m scripts.link_provider --user 1 --platform fitbit --token <token>
    uv run python -m scripts.link_provider --user 1 --platform fitbit --token <token> \
        --external-user-id 22ABCD
"""

import argparse
import sys

from sqlalchemy.orm import Session

from database import get_session_local, init_db
from integrations.provider_protocol import Platform
from models import ProviderLink
from services.user_service import UserService


def link(
    db: Session,
    user_id: int,
    platform: str,
    token: str,
    external_user_id: str | None = None,
) -> ProviderLink:
    """Link the platform and commit.

    Raises:
        ValueError: For an unknown platform or an empty token.
    """
    link_row = UserService.link_provider(
        db,
        user_id,
        Platform(platform),
        token,
        external_user_id=external_user_id,
    )
    db.commit()
    return link_row


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Link a user to a fitness platform")
    parser.add_argument("--user", type=int, required=True, help="User id")
    parser.add_argument(
        "--platform",
        required=True,
        choices=[p.value for p in Platform],
        help="Platform to link",
    )
    parser.add_argument("--token", required=True, help="The user's platform access token")
    parser.add_argument(
        "--external-user-id",
        default=None,
        help="The platform's id for the user (Fitbit uses '-' when omitted)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    init_db()
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        link(db, args.user, args.platform, args.token, args.external_user_id)
    except ValueError as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    print(f"Linked {args.platform} for user {args.user}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
