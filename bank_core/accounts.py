"""
Account Management Module

Accounts hold a Money balance guarded by a per-account lock. Deposits,
withdrawals and balance reads lock only their own account; transfers go
through the TransferCoordinator which locks both accounts in id order.
"""

import threading
from contextlib import contextmanager
from decimal import Context
from typing import Dict, List, Optional

from .money import Money, MoneyLike, ZERO
from .errors import (
    InvalidArgument, InvalidAmount, InsufficientFunds, BalanceOverflow,
    AccountBusy, AccountNotFound, DuplicateAccount
)
from .transfers import TransferCoordinator, TransferResult, default_coordinator
from .logging_config import get_logger, log_action


logger = get_logger("bank_core.accounts")

# Enough digits to state an overflowing sum exactly in error messages
MAX_SUM_PRECISION = 60


class Account:
    """
    Bank account with a thread-safe 2-decimal balance.

    Equality and hashing use the identifier only; the balance never takes
    part. Two live Account objects must not share an identifier.
    """

    def __init__(
        self,
        account_id: str,
        initial_balance: MoneyLike = ZERO,
        lock_timeout: Optional[float] = None
    ):
        """
        Create an account

        Args:
            account_id: Non-empty identifier, fixed for the account's lifetime
            initial_balance: Opening balance, zero or more
            lock_timeout: Seconds to wait for the account lock (None waits forever)

        Raises:
            InvalidArgument: If account_id is missing or blank
            InvalidAmount: If initial_balance is missing or negative
        """
        if not isinstance(account_id, str) or not account_id.strip():
            raise InvalidArgument("Account identifier cannot be empty")

        self._id = account_id
        self._balance = Money.non_negative(initial_balance)
        self._lock = threading.RLock()
        self.lock_timeout = lock_timeout

    @property
    def id(self) -> str:
        """Immutable account identifier"""
        return self._id

    @contextmanager
    def locked(self, timeout: Optional[float] = None):
        """
        Hold this account's lock for the duration of the block

        Raises:
            AccountBusy: If a timeout applies and the lock is not acquired in time
        """
        if timeout is None:
            timeout = self.lock_timeout
        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise AccountBusy(self._id, timeout)
        try:
            yield self
        finally:
            self._lock.release()

    def get_balance(self) -> Money:
        """Current balance (Money is immutable, callers cannot alter stored state)"""
        with self.locked():
            return Money(self._balance.amount)

    def deposit(self, amount: MoneyLike) -> Money:
        """
        Add a strictly positive amount to the balance

        Returns:
            Balance after the deposit

        Raises:
            BalanceOverflow: If the new balance exceeds decimal precision
        """
        amt = Money.positive(amount)
        with self.locked():
            balance = self._credited(amt)
            self._balance = balance

        log_action(
            logger, "debug", f"Deposited {amt.to_string()}",
            action="deposit", resource=self._id,
            extra={"amount": amt.to_string(), "balance": balance.to_string()}
        )
        return balance

    def withdraw(self, amount: MoneyLike) -> Money:
        """
        Remove a strictly positive amount from the balance

        Returns:
            Balance after the withdrawal

        Raises:
            InsufficientFunds: If the amount exceeds the current balance
        """
        amt = Money.positive(amount)
        try:
            with self.locked():
                balance = self._debited(amt)
                self._balance = balance
        except InsufficientFunds as e:
            log_action(
                logger, "warning", f"Withdrawal rejected: {e}",
                action="withdraw", resource=self._id,
                extra={"balance": e.balance.to_string(), "requested": e.requested.to_string()}
            )
            raise

        log_action(
            logger, "debug", f"Withdrew {amt.to_string()}",
            action="withdraw", resource=self._id,
            extra={"amount": amt.to_string(), "balance": balance.to_string()}
        )
        return balance

    def transfer_to(self, destination: 'Account', amount: MoneyLike) -> TransferResult:
        """Move amount from this account to destination atomically"""
        return default_coordinator.transfer(self, destination, amount)

    # Callers must hold self._lock. Both return the new balance without storing it.

    def _credited(self, amount: Money) -> Money:
        try:
            return self._balance + amount
        except InvalidAmount:
            resulting = Context(prec=MAX_SUM_PRECISION).add(self._balance.amount, amount.amount)
            raise BalanceOverflow(self._id, self._balance, amount, resulting)

    def _debited(self, amount: Money) -> Money:
        if self._balance < amount:
            raise InsufficientFunds(self._id, self._balance, amount)
        return self._balance - amount

    def __eq__(self, other) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return f"Account(id={self._id!r}, balance={self.get_balance().to_string()})"


class AccountRegistry:
    """
    Thread-safe lookup of accounts by identifier

    Guarantees at most one live Account per identifier. The registry lock
    guards the mapping only and is never held while an account lock is taken.
    """

    def __init__(
        self,
        lock_timeout: Optional[float] = None,
        coordinator: Optional[TransferCoordinator] = None
    ):
        self.lock_timeout = lock_timeout
        self.coordinator = coordinator or TransferCoordinator(lock_timeout=lock_timeout)
        self._accounts: Dict[str, Account] = {}
        self._lock = threading.RLock()

    def open(self, account_id: str, initial_balance: MoneyLike = ZERO) -> Account:
        """
        Create and register a new account

        Raises:
            DuplicateAccount: If the identifier is already registered
        """
        account = Account(account_id, initial_balance, lock_timeout=self.lock_timeout)
        with self._lock:
            if account_id in self._accounts:
                raise DuplicateAccount(account_id)
            self._accounts[account_id] = account

        log_action(
            logger, "info", f"Account opened: {account_id}",
            action="open", resource=account_id,
            extra={"initial_balance": account.get_balance().to_string()}
        )
        return account

    def get(self, account_id: str) -> Account:
        """Look up an account, raising AccountNotFound if it is not registered"""
        with self._lock:
            account = self._accounts.get(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def get_or_create(self, account_id: str) -> Account:
        """Look up an account, opening it with a zero balance if missing"""
        try:
            return self.get(account_id)
        except AccountNotFound:
            pass
        try:
            return self.open(account_id)
        except DuplicateAccount:
            # opened concurrently by another caller
            return self.get(account_id)

    def transfer(self, source_id: str, destination_id: str, amount: MoneyLike) -> TransferResult:
        """Transfer between two registered accounts"""
        return self.coordinator.transfer(self.get(source_id), self.get(destination_id), amount)

    def ids(self) -> List[str]:
        with self._lock:
            return sorted(self._accounts)

    def total_balance(self) -> Money:
        """
        Sum of all balances as one consistent snapshot

        Every account lock is held (acquired in id order) while summing,
        so no transfer can be observed half-applied.
        """
        with self._lock:
            accounts = list(self._accounts.values())

        total = ZERO
        with self.coordinator.locked(*accounts):
            for account in accounts:
                total = total + account.get_balance()
        return total

    def __contains__(self, account_id: str) -> bool:
        with self._lock:
            return account_id in self._accounts

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
