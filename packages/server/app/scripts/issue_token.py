"""
Mint a bearer token for an identity, optionally registering its account.

    python -m app.scripts.issue_token alice@example --register "Alice" alice@example.com
"""

import argparse
import asyncio
from datetime import timedelta
from typing import Optional

from app.core.auth import create_jwt
from app.core.database import get_session_context, init_db
from app.core.exceptions import Conflict
from app.services.accounts import create_account


async def register(identity: str, display_name: str, email: str) -> None:
    await init_db()
    try:
        async with get_session_context() as session:
            await create_account(identity, display_name, email, session)
        print(f"Registered account for {identity}")
    except Conflict:
        print(f"Account for {identity} already exists.")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Issue a bearer token for local testing")
    parser.add_argument("identity", help="Opaque caller identity (the token subject)")
    parser.add_argument("--minutes", type=int, default=None, help="Token lifetime in minutes")
    parser.add_argument(
        "--register",
        nargs=2,
        metavar=("DISPLAY_NAME", "EMAIL"),
        help="Also create the account if it does not exist",
    )
    args = parser.parse_args(argv)

    if args.register:
        asyncio.run(register(args.identity, *args.register))

    expires = timedelta(minutes=args.minutes) if args.minutes else None
    token, _ = create_jwt(args.identity, expires_delta=expires)
    print(token)


if __name__ == "__main__":
    main()
