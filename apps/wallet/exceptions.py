"""
Domain exceptions for wallet app.
"""
from rest_framework.exceptions import APIException


class InvalidWalletAmountError(APIException):
    """Amount must be positive."""
    status_code = 400
    default_detail = 'Amount must be greater than zero.'
    default_code = 'invalid_wallet_amount'


class InsufficientWalletBalanceError(APIException):
    """Wallet balance does not cover the debit."""
    status_code = 409
    default_detail = 'Insufficient wallet balance.'
    default_code = 'insufficient_wallet_balance'


class WalletUnavailableError(APIException):
    """Wallet store could not be reached; the request may be retried."""
    status_code = 503
    default_detail = 'Wallet is temporarily unavailable. Please try again.'
    default_code = 'wallet_unavailable'
