#!/usr/bin/env python
"""Create an account from the command line (seed helper)."""
import sys

from tasktrack.config import load_settings
from tasktrack.database import create_db_engine, create_tables, get_session
from tasktrack.errors import TaskTrackError
from tasktrack.services import accounts
from tasktrack.tokens import TokenService


def main(argv):
    if len(argv) != 2:
        print("usage: add_user.py EMAIL PASSWORD", file=sys.stderr)
        return 2
    email, password = argv

    settings = load_settings()
    engine = create_db_engine(settings.database_url)
    create_tables(engine)
    tokens = TokenService(settings.jwt_secret, settings.refresh_secret)

    with get_session(engine) as db:
        try:
            user, _ = accounts.register(db, tokens, email, password, rounds=settings.bcrypt_rounds)
        except TaskTrackError as exc:
            print(f"Could not create user: {exc.message}", file=sys.stderr)
            return 1
    print(f"User created: {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
