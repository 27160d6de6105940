"""bcrypt password hashing."""

import bcrypt

# bcrypt only looks at the first 72 bytes of the secret
_MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    secret = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    return bcrypt.hashpw(secret, bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    secret = password.encode("utf-8")[:_MAX_PASSWORD_BYTES]
    try:
        return bcrypt.checkpw(secret, password_hash.encode("ascii"))
    except ValueError:
        # Malformed hash stored for the account
        return False
