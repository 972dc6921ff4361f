"""
Password hashing, verification and strength rules.

Hashes use passlib with PBKDF2-SHA256.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

REQUIRED_LENGTH = 6


def verify_password(plain_password: str | None, hashed_password: str | None) -> bool:
    """
    Verify a plaintext password against a stored hash.

    Returns:
        True if the password matches, False otherwise (including missing values
        or an unrecognised hash)
    """
    if plain_password is None or hashed_password is None:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def validate_password(password: str) -> list[str]:
    """Return the list of strength rules ``password`` breaks (empty when valid)."""
    errors: list[str] = []
    if len(password) < REQUIRED_LENGTH:
        errors.append(f"Passwords must be at least {REQUIRED_LENGTH} characters.")
    if not any(ch.isdigit() for ch in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if not any(ch.islower() for ch in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if not any(ch.isupper() for ch in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    if all(ch.isalnum() for ch in password):
        errors.append("Passwords must have at least one non alphanumeric character.")
    return errors
