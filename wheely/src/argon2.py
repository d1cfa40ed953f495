from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

passwordHasher = PasswordHasher(encoding="utf-8")


def makePassword(password: str) -> str:
    """
    Hash a plain-text password using Argon2.

    The caller is expected to run the password policy check first.

    Args:
        password (str): The plain-text password to be hashed.

    Returns:
        str: The Argon2 hash of the given password, salt included.

    Raises:
        ValueError: If the password is empty or blank.
    """
    if not password or not password.strip():
        raise ValueError("Password must not be empty")
    return passwordHasher.hash(password)


def checkPassword(password: str, actual_password: str) -> bool:
    """
    Verify a plain-text password against a stored Argon2 hash.

    Args:
        password (str): The plain-text password to check.
        actual_password (str): The stored Argon2 hash of the password.

    Returns:
        bool: True if the password matches the hash, False otherwise
        (including a malformed stored hash).
    """
    if not password or not actual_password:
        return False
    try:
        return passwordHasher.verify(actual_password, password)
    except (VerificationError, InvalidHashError):
        return False
