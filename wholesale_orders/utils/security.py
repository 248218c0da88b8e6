# wholesale_orders/utils/security.py

"""
Password hashing and verification for the users that issue order operations.
passlib with sha256_crypt keeps hashing portable across platforms.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hashes a password.

    :param password: plain password
    :return: salted hash
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Checks a password against its stored hash.

    :param plain_password: plain password from the login form
    :param hashed_password: hash stored on the user row
    :return: True when they match
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)
