"""
Transfer Coordination Module

Moves money between two accounts as one critical section. Locks are always
acquired in ascending identifier order, whichever account is the source,
so two transfers over the same pair can never wait on each other in a cycle.
"""

from contextlib import contextmanager, ExitStack
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional

from .money import Money, MoneyLike
from .errors import InvalidArgument, InsufficientFunds, BalanceOverflow, AccountBusy
from .logging_config import get_logger, log_action

if TYPE_CHECKING:
    from .accounts import Account


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a committed transfer"""
    source_id: str
    destination_id: str
    amount: Money
    source_balance: Money
    destination_balance: Money


class TransferCoordinator:
    """
    Performs all-or-nothing transfers using global lock ordering
    """

    def __init__(self, lock_timeout: Optional[float] = None):
        self.lock_timeout = lock_timeout
        self.logger = get_logger("bank_core.transfers")

    @staticmethod
    def lock_order(accounts: Iterable['Account']) -> List['Account']:
        """Accounts sorted by identifier, the order their locks must be taken in"""
        return sorted(accounts, key=lambda account: account.id)

    @contextmanager
    def locked(self, *accounts: 'Account'):
        """
        Hold the locks of all given accounts, acquired in identifier order

        Locks already taken are released if a later acquisition fails.

        Raises:
            InvalidArgument: If two of the accounts share an identifier
            AccountBusy: If a lock timeout applies and expires
        """
        ordered = self.lock_order(accounts)
        for first, second in zip(ordered, ordered[1:]):
            if first.id == second.id:
                raise InvalidArgument(f"Account {first.id} given more than once")

        with ExitStack() as stack:
            for account in ordered:
                stack.enter_context(account.locked(self.lock_timeout))
            yield ordered

    def transfer(self, source: 'Account', destination: 'Account', amount: MoneyLike) -> TransferResult:
        """
        Debit source and credit destination atomically

        Args:
            source: Account to debit
            destination: Distinct account to credit
            amount: Strictly positive amount

        Returns:
            TransferResult with both post-transfer balances

        Raises:
            InvalidArgument: If an account is missing or both name the same account
            InvalidAmount: If amount is missing or not greater than zero
            InsufficientFunds: If source balance is below amount (nothing is changed)
            BalanceOverflow: If the destination balance would exceed decimal precision (nothing is changed)
            AccountBusy: If a lock timeout applies and expires (nothing is changed)
        """
        if source is None:
            raise InvalidArgument("Source account cannot be None")
        if destination is None:
            raise InvalidArgument("Destination account cannot be None")
        if source.id == destination.id:
            raise InvalidArgument("Cannot transfer to self")
        amt = Money.positive(amount)

        try:
            with self.locked(source, destination):
                # Both new balances are computed before either is stored
                source_balance = source._debited(amt)
                destination_balance = destination._credited(amt)
                source._balance = source_balance
                destination._balance = destination_balance
                result = TransferResult(
                    source_id=source.id,
                    destination_id=destination.id,
                    amount=amt,
                    source_balance=source_balance,
                    destination_balance=destination_balance
                )
        except (InsufficientFunds, BalanceOverflow, AccountBusy) as e:
            log_action(
                self.logger, "warning", f"Transfer rejected: {e}",
                action="transfer", resource=f"{source.id}->{destination.id}",
                extra={"amount": amt.to_string()}
            )
            raise

        log_action(
            self.logger, "info", f"Transfer committed: {amt.to_string()}",
            action="transfer", resource=f"{source.id}->{destination.id}",
            extra={
                "amount": amt.to_string(),
                "source_balance": result.source_balance.to_string(),
                "destination_balance": result.destination_balance.to_string()
            }
        )
        return result


# Shared coordinator behind Account.transfer_to
default_coordinator = TransferCoordinator()


def transfer(source: 'Account', destination: 'Account', amount: MoneyLike) -> TransferResult:
    """Transfer using the shared coordinator"""
    return default_coordinator.transfer(source, destination, amount)
