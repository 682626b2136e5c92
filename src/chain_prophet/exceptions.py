"""Exception hierarchy for Chain Prophet."""

from decimal import Decimal
from typing import Any

from .types import ErrorCategory


class ChainProphetError(Exception):
    """Base exception for all Chain Prophet errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ChainProphetError):
    """Raised when required settings are missing or malformed."""

    pass


class ValidationError(ChainProphetError):
    """Raised when input validation fails."""

    category = ErrorCategory.MISSING_PARAMETER

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.field = field
        self.value = value


class InvalidAddressError(ValidationError):
    """Raised when a value is not a 20-byte hex address."""

    category = ErrorCategory.INVALID_ADDRESS


class InvalidAmountError(ValidationError):
    """Raised when an amount, price or duration is not acceptable."""

    category = ErrorCategory.INVALID_AMOUNT


class MissingParameterError(ValidationError):
    """Raised when a required parameter could not be extracted."""

    category = ErrorCategory.MISSING_PARAMETER


class NetworkError(ChainProphetError):
    """Raised when network/connection issues occur."""

    category = ErrorCategory.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class NotOwnerError(ChainProphetError):
    """Raised when the signer does not own the resource it tries to mutate."""

    category = ErrorCategory.NOT_OWNER

    def __init__(
        self,
        message: str,
        identity: str | None = None,
        resource: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.identity = identity
        self.resource = resource


class AuthorizationRequiredError(ChainProphetError):
    """Raised when an approval is still missing after the automatic attempt."""

    category = ErrorCategory.AUTHORIZATION_REQUIRED

    def __init__(
        self,
        message: str,
        grantee: str | None = None,
        token_id: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.grantee = grantee
        self.token_id = token_id


class InsufficientBalanceError(ChainProphetError):
    """Raised when the balance cannot cover amount plus fees."""

    category = ErrorCategory.INSUFFICIENT_BALANCE

    def __init__(
        self,
        message: str,
        balance: Decimal,
        required: Decimal,
        details: dict | None = None,
    ):
        super().__init__(message, details)
        self.balance = balance
        self.required = required
        self.shortfall = required - balance


class InvalidStateError(ChainProphetError):
    """Raised when on-chain state does not allow the operation (not listed, already repaid...)."""

    category = ErrorCategory.INVALID_STATE
