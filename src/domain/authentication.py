"""Login and bearer-token resolution for existing accounts."""

from dataclasses import dataclass

from .credentials import CredentialIssuer
from .exceptions import InvalidCredentials
from .ports import Account, AccountRepository
from .registration import AuthResult


@dataclass
class AuthenticationService:
    accounts: AccountRepository
    credentials: CredentialIssuer

    def login(self, email: str, password: str) -> AuthResult:
        """
        Check email and password and issue a bearer credential.

        Raises:
            InvalidCredentials: For an unknown email or a wrong password alike
        """
        account = self.accounts.get_by_email(email.strip())
        if account is None or not self.credentials.verify_password(password, account.password_hash):
            raise InvalidCredentials()
        return AuthResult(token=self.credentials.issue_token(account.id), account=account)

    def current_account(self, token: str) -> Account:
        account = self.accounts.get_by_id(self.credentials.decode_token(token))
        if account is None:
            raise InvalidCredentials("User not found")
        return account
