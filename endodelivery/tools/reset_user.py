from __future__ import annotations

import sys

from endodelivery.auth_service import delete_user


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python -m endodelivery.tools.reset_user <username>")
        raise SystemExit(2)

    username = sys.argv[1].strip().lower()
    if not username:
        print("Invalid username.")
        raise SystemExit(2)

    if delete_user(username):
        print(f"OK: user '{username}' deleted.")
    else:
        print(f"User '{username}' not found, nothing to do.")


if __name__ == "__main__":
    main()
