"""Amount validation and checked arithmetic."""

from flowvault.exceptions import InsufficientBalanceError, InvalidAmountError, ZeroAmountError


def validate_amount(amount: int, allow_zero: bool = True) -> int:
    """Ensure ``amount`` is a non-negative integer.

    Raises
    ------
    InvalidAmountError
        If the amount is not an ``int`` or is negative.
    ZeroAmountError
        If the amount is zero and ``allow_zero`` is False.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer, got {type(amount).__name__}")
    if amount < 0:
        raise InvalidAmountError(f"Amount must be non-negative, got {amount}")
    if amount == 0 and not allow_zero:
        raise ZeroAmountError("Amount must be greater than zero")
    return amount


def checked_sub(balance: int, amount: int, error: type[Exception] = InsufficientBalanceError) -> int:
    """Subtract without going below zero."""
    if amount > balance:
        raise error(f"Insufficient balance: {balance} < {amount}")
    return balance - amount
