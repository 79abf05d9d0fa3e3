"""
Test suite for accounts module

Tests account construction, deposits, withdrawals, identifier equality,
lock behaviour under concurrency, and the account registry.
"""

import pytest
import threading
from decimal import Decimal

from bank_core.money import Money, ZERO
from bank_core.accounts import Account, AccountRegistry
from bank_core.errors import (
    InvalidArgument, InvalidAmount, InsufficientFunds, BalanceOverflow,
    AccountBusy, AccountNotFound, DuplicateAccount
)


class TestAccountCreation:
    """Test account construction and validation"""

    def test_initial_balance_is_normalized(self):
        """Test balance read right after construction"""
        account = Account("ACC001", Decimal('100.555'))
        assert account.id == "ACC001"
        assert account.get_balance() == Money('100.56')
        assert account.get_balance().amount.as_tuple().exponent == -2

    def test_default_zero_balance(self):
        """Test account created without initial balance"""
        account = Account("ACC002")
        assert account.get_balance() == ZERO

    @pytest.mark.parametrize("account_id", ["", "   ", None, 42])
    def test_invalid_identifier(self, account_id):
        """Test missing or blank identifiers are rejected"""
        with pytest.raises(InvalidArgument, match="cannot be empty"):
            Account(account_id, Decimal('10.00'))

    def test_negative_initial_balance(self):
        """Test negative opening balance is rejected"""
        with pytest.raises(InvalidAmount):
            Account("ACC003", Decimal('-0.01'))

    def test_missing_initial_balance(self):
        """Test explicit None opening balance is rejected"""
        with pytest.raises(InvalidAmount):
            Account("ACC004", None)

    def test_identifier_is_read_only(self):
        """Test the identifier cannot be reassigned"""
        account = Account("ACC005")
        with pytest.raises(AttributeError):
            account.id = "OTHER"

    def test_repr(self):
        account = Account("ACC006", "12.5")
        assert repr(account) == "Account(id='ACC006', balance=12.50)"


class TestDepositWithdraw:
    """Test single-account operations"""

    def test_deposit_and_withdraw(self):
        """Basic single-threaded operations"""
        account = Account("T001", Decimal('100.00'))

        assert account.deposit(Decimal('50.50')) == Money('150.50')
        assert account.get_balance() == Money('150.50')

        assert account.withdraw(Decimal('20.00')) == Money('130.50')
        assert account.get_balance() == Money('130.50')

    def test_accepts_money_and_strings(self):
        account = Account("T002")
        account.deposit(Money('1.10'))
        account.deposit('2.20')
        assert account.get_balance() == Money('3.30')

    def test_deposit_withdraw_round_trip(self):
        """Depositing then withdrawing the same amount restores the balance"""
        account = Account("T003", Decimal('73.19'))
        account.deposit(Decimal('26.81'))
        account.withdraw(Decimal('26.81'))
        assert account.get_balance() == Money('73.19')

    def test_repeated_reads_are_identical(self):
        account = Account("T004", Decimal('9.99'))
        assert account.get_balance() == account.get_balance() == Money('9.99')

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-10.00'), None, "0.004"])
    def test_invalid_deposit_amount(self, amount):
        """Non-positive amounts are rejected without changing the balance"""
        account = Account("T005", Decimal('100.00'))
        with pytest.raises(InvalidAmount):
            account.deposit(amount)
        assert account.get_balance() == Money('100.00')

    @pytest.mark.parametrize("amount", [Decimal('0'), Decimal('-10.00'), None])
    def test_invalid_withdraw_amount(self, amount):
        account = Account("T006", Decimal('100.00'))
        with pytest.raises(InvalidAmount):
            account.withdraw(amount)
        assert account.get_balance() == Money('100.00')

    def test_withdraw_entire_balance(self):
        """Withdrawing exactly the balance leaves 0.00"""
        account = Account("T007", Decimal('100.00'))
        account.withdraw(Decimal('100.00'))
        assert account.get_balance() == ZERO
        assert account.get_balance().to_string() == "0.00"

    def test_withdraw_one_cent_too_many(self):
        """Insufficient funds carries balance and requested amount"""
        account = Account("T008", Decimal('100.00'))

        with pytest.raises(InsufficientFunds) as exc_info:
            account.withdraw(Decimal('100.01'))

        error = exc_info.value
        assert error.account_id == "T008"
        assert error.balance == Money('100.00')
        assert error.requested == Money('100.01')
        assert "balance 100.00, requested 100.01" in str(error)
        assert account.get_balance() == Money('100.00')

    def test_rounding_after_arithmetic(self):
        """Amounts half a cent above a 2-decimal value round to even"""
        account = Account("T009", Decimal('10.00'))
        account.deposit(Decimal('0.125'))
        assert account.get_balance() == Money('10.12')

        account = Account("T010", Decimal('10.00'))
        account.deposit(Decimal('0.135'))
        assert account.get_balance() == Money('10.14')

    def test_deposit_overflow_names_resulting_balance(self):
        """A deposit past decimal precision is rejected and reports the balance it would produce"""
        account = Account("T011", Decimal('99999999999999999999999999.99'))

        with pytest.raises(BalanceOverflow) as exc_info:
            account.deposit(Decimal('1.00'))

        error = exc_info.value
        assert isinstance(error, InvalidAmount)
        assert error.account_id == "T011"
        assert error.amount == Money('1.00')
        assert error.resulting == Decimal('100000000000000000000000000.99')
        assert "100000000000000000000000000.99" in str(error)
        assert account.get_balance() == Money('99999999999999999999999999.99')


class TestAccountEquality:
    """Test identifier-based equality"""

    def test_equal_by_identifier(self):
        first = Account("EQ001", Decimal('10.00'))
        second = Account("EQ001", Decimal('99.00'))
        other = Account("EQ002", Decimal('10.00'))

        assert first == second
        assert first != other
        assert hash(first) == hash(second)
        assert len({first, second, other}) == 2

    def test_equality_ignores_balance_changes(self):
        first = Account("EQ003")
        second = Account("EQ003")
        first.deposit(Decimal('5.00'))
        assert first == second

    def test_not_equal_to_other_types(self):
        assert Account("EQ004") != "EQ004"

    def test_duplicates_are_separate_lockable_objects(self):
        """Equal accounts still own independent locks and balances"""
        first = Account("EQ005", Decimal('1.00'))
        second = Account("EQ005", Decimal('1.00'))
        first.deposit(Decimal('1.00'))
        assert first.get_balance() == Money('2.00')
        assert second.get_balance() == Money('1.00')


class TestAccountConcurrency:
    """Test that the per-account lock prevents lost updates"""

    def test_concurrent_deposits(self):
        """N concurrent deposits of a yield N * a"""
        account = Account("CONC001")
        threads_count = 20
        deposits_per_thread = 250
        errors = []

        def deposit_many():
            try:
                for _ in range(deposits_per_thread):
                    account.deposit(Decimal('0.01'))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=deposit_many) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(errors) == 0, f"Errors occurred: {errors}"
        expected = Decimal('0.01') * threads_count * deposits_per_thread
        assert account.get_balance() == Money(expected)

    def test_concurrent_withdrawals_never_overdraw(self):
        """Only as many withdrawals succeed as the balance covers"""
        account = Account("CONC002", Decimal('100.00'))
        succeeded = []
        rejected = []

        def withdraw_once():
            try:
                account.withdraw(Decimal('1.00'))
                succeeded.append(True)
            except InsufficientFunds:
                rejected.append(True)

        threads = [threading.Thread(target=withdraw_once) for _ in range(150)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(succeeded) == 100
        assert len(rejected) == 50
        assert account.get_balance() == ZERO

    def test_lock_timeout_raises_busy(self):
        """A bounded lock wait fails with AccountBusy and changes nothing"""
        account = Account("BUSY001", Decimal('10.00'), lock_timeout=0.05)
        errors = []

        def deposit():
            try:
                account.deposit(Decimal('1.00'))
            except AccountBusy as e:
                errors.append(e)

        with account.locked():
            thread = threading.Thread(target=deposit)
            thread.start()
            thread.join()

        assert len(errors) == 1
        assert errors[0].account_id == "BUSY001"
        assert account.get_balance() == Money('10.00')


class TestAccountRegistry:
    """Test account lookup by identifier"""

    def setup_method(self):
        self.registry = AccountRegistry()

    def test_open_and_get(self):
        account = self.registry.open("REG001", Decimal('50.00'))
        assert self.registry.get("REG001") is account
        assert "REG001" in self.registry
        assert len(self.registry) == 1

    def test_duplicate_identifier(self):
        self.registry.open("REG002")
        with pytest.raises(DuplicateAccount, match="already exists"):
            self.registry.open("REG002", Decimal('10.00'))
        # DuplicateAccount is an InvalidArgument
        with pytest.raises(InvalidArgument):
            self.registry.open("REG002")

    def test_invalid_open_registers_nothing(self):
        with pytest.raises(InvalidAmount):
            self.registry.open("REG003", Decimal('-1.00'))
        assert "REG003" not in self.registry

    def test_get_unknown(self):
        with pytest.raises(AccountNotFound, match="REG404"):
            self.registry.get("REG404")

    def test_get_or_create(self):
        created = self.registry.get_or_create("REG005")
        assert created.get_balance() == ZERO
        assert self.registry.get_or_create("REG005") is created

    def test_concurrent_get_or_create_returns_one_account(self):
        results = []

        def lookup():
            results.append(self.registry.get_or_create("REG006"))

        threads = [threading.Thread(target=lookup) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(self.registry) == 1
        assert all(account is results[0] for account in results)

    def test_ids_sorted(self):
        for account_id in ["B", "C", "A"]:
            self.registry.open(account_id)
        assert self.registry.ids() == ["A", "B", "C"]

    def test_transfer_by_identifier(self):
        self.registry.open("REG007", Decimal('30.00'))
        self.registry.open("REG008", Decimal('5.00'))

        result = self.registry.transfer("REG007", "REG008", Decimal('12.50'))

        assert result.source_balance == Money('17.50')
        assert result.destination_balance == Money('17.50')
        with pytest.raises(AccountNotFound):
            self.registry.transfer("REG007", "MISSING", Decimal('1.00'))

    def test_total_balance(self):
        assert self.registry.total_balance() == ZERO
        self.registry.open("REG009", Decimal('10.10'))
        self.registry.open("REG010", Decimal('0.90'))
        assert self.registry.total_balance() == Money('11.00')
