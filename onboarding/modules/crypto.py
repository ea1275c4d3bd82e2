import os
import hmac
import secrets
import string
from typing import Optional, Tuple
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from dotenv import load_dotenv

load_dotenv()

# PBKDF2 parameters. Changing any of these invalidates every stored PIN hash.
SALT_LENGTH = int(os.getenv("PIN_SALT_LENGTH", "256"))
ITERATIONS = int(os.getenv("PIN_HASH_ITERATIONS", "10000"))
KEY_LENGTH = int(os.getenv("PIN_KEY_LENGTH", "512"))

TEMP_PIN_LENGTH = int(os.getenv("TEMP_PIN_LENGTH", "4"))

SALT_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def generate_salt(length: Optional[int] = None) -> str:
    """
    Returns a random alphanumeric salt drawn from the OS CSPRNG.
    """
    length = length or SALT_LENGTH
    return "".join(secrets.choice(SALT_ALPHABET) for _ in range(length))


def hash_pin(raw_pin: str, salt: str) -> str:
    """
    Derives the hex-encoded PBKDF2-HMAC-SHA512 key for a PIN and salt.
    The same (raw_pin, salt) pair always yields the same value.
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=KEY_LENGTH,
        salt=salt.encode("utf-8"),
        iterations=ITERATIONS,
    )
    return kdf.derive(raw_pin.encode("utf-8")).hex()


def encrypt_pin(raw_pin: str) -> Tuple[str, str]:
    """
    Salts and hashes a raw PIN.
    Returns: (salt, encoded_pin)
    """
    salt = generate_salt()
    return salt, hash_pin(raw_pin, salt)


def compare_pin(raw_pin: str, salt: str, encoded_pin: str) -> bool:
    """
    Checks a raw PIN against a stored salt and hash in constant time.
    """
    if not salt or not encoded_pin:
        return False
    return hmac.compare_digest(hash_pin(raw_pin, salt), encoded_pin)


def generate_temp_pin(length: Optional[int] = None) -> str:
    """Random numeric one-time PIN."""
    length = length or TEMP_PIN_LENGTH
    return "".join(str(secrets.randbelow(10)) for _ in range(length))
