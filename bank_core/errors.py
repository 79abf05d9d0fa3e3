"""
Account Error Taxonomy

Errors raised synchronously by the account core. InsufficientFunds carries
the balance and requested amount so callers can report them.
"""

from typing import Optional


class AccountError(Exception):
    """Base class for all account core errors"""


class InvalidArgument(AccountError, ValueError):
    """Structurally invalid input: empty identifier, missing destination, self-transfer"""


class InvalidAmount(AccountError, ValueError):
    """Amount missing, negative, or not strictly positive where required"""


class InsufficientFunds(AccountError):
    """Debit exceeds the current balance of the account"""

    def __init__(self, account_id: str, balance, requested):
        self.account_id = account_id
        self.balance = balance
        self.requested = requested
        super().__init__(
            f"Insufficient funds in account {account_id}: "
            f"balance {balance.to_string()}, requested {requested.to_string()}"
        )


class AccountBusy(AccountError):
    """Account lock could not be acquired within the configured wait"""

    def __init__(self, account_id: str, timeout: Optional[float] = None):
        self.account_id = account_id
        self.timeout = timeout
        super().__init__(f"Account {account_id} is busy (waited {timeout}s)")


class AccountNotFound(AccountError, LookupError):
    """No account registered under the identifier"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} not found")


class DuplicateAccount(InvalidArgument):
    """An account with the identifier is already registered"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account {account_id} already exists")


class BalanceOverflow(InvalidAmount):
    """Resulting balance cannot be held at 2-decimal precision"""

    def __init__(self, account_id: str, balance, amount, resulting):
        self.account_id = account_id
        self.balance = balance
        self.amount = amount
        self.resulting = resulting
        super().__init__(
            f"Crediting {amount.to_string()} to account {account_id} would make the balance "
            f"{resulting:f}, above the maximum representable balance (current {balance.to_string()})"
        )
