from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError

# Argon2 Password Hasher Instance
ph = PasswordHasher()


def hash_password(password: str) -> str | None:
    """
    Hashes a plain-text secret using Argon2.
    Also used for one-time verification codes, so nothing is stored in clear.
    """
    if not password:
        return None
    return ph.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verifies a plain-text secret against a stored Argon2 hash.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        return ph.verify(hashed_password, plain_password)
    except (VerificationError, InvalidHashError):
        return False
