"""
Print a password hash suitable for ADMIN_PASSWORD_HASH.
"""

import getpass

from werkzeug.security import generate_password_hash


def main():
    password = getpass.getpass("Admin password: ")
    if not password or password != getpass.getpass("Repeat: "):
        raise SystemExit("Passwords are empty or do not match")
    print(generate_password_hash(password))


if __name__ == "__main__":
    main()
