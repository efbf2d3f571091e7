"""
Credential issuer - password hashing and bearer tokens.

Passwords are hashed with bcrypt. Bearer credentials are HS256 JWTs
carrying the account id in ``sub`` and an ``exp`` claim.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from .exceptions import InvalidCredentials, PasswordTooLong, WeakPassword

# bcrypt only reads the first 72 bytes and newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def check_password_length(password: str, min_length: int) -> None:
    """
    Enforce the accepted password length range.

    Raises:
        WeakPassword: If the password is shorter than ``min_length`` characters
        PasswordTooLong: If the UTF-8 encoding exceeds what bcrypt can hash
    """
    if len(password) < min_length:
        raise WeakPassword(min_length)
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        raise PasswordTooLong(MAX_PASSWORD_BYTES)


@dataclass
class CredentialIssuer:
    """Stateless helper for password hashes and signed bearer tokens."""

    secret: str
    algorithm: str = "HS256"
    expire_minutes: int = 60 * 24 * 7
    bcrypt_cost: int = 10

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.bcrypt_cost)).decode()

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Constant-time bcrypt comparison. Over-long input never matches."""
        if len(password.encode()) > MAX_PASSWORD_BYTES:
            return False
        return bcrypt.checkpw(password.encode(), password_hash.encode())

    def issue_token(self, account_id: int) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {"sub": str(account_id), "exp": expire}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> int:
        """
        Return the account id carried by ``token``.

        Raises:
            InvalidCredentials: If the token is expired, tampered with or malformed
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidCredentials("Token expired") from None
        except jwt.PyJWTError:
            raise InvalidCredentials("Invalid token") from None

        subject = payload.get("sub")
        if subject is None or not str(subject).isdigit():
            raise InvalidCredentials("Invalid token payload")
        return int(subject)
