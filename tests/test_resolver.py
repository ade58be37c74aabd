"""Tests for the action decision table."""

from dataclasses import replace
from decimal import Decimal
from itertools import product

import pytest
from fakes import OTHER, USER

from time_tomb.resolver import resolve_action, resolve_kind
from time_tomb.types import (
    ActionKind,
    ContractSnapshot,
    TransactionKind,
    TransactionRecord,
    TransactionState,
    WalletContext,
)


def _snapshot(**overrides) -> ContractSnapshot:
    base = ContractSnapshot(
        total_deposited=Decimal("12"),
        remaining_time_ms=60_000,
        game_end_timestamp=1_700_000_000,
        current_leader=OTHER,
        contract_balance=Decimal("12"),
        user_allowance=Decimal("5"),
        user_balance=Decimal("5"),
        user_address=USER,
    )
    return replace(base, **overrides)


CONNECTED = WalletContext(address=USER, chain_id=84532)


class TestDecisionTable:
    """Scenarios from the decision table."""

    def test_no_address_connects_wallet(self):
        """An unset address always yields ConnectWallet."""
        assert resolve_kind(_snapshot(), WalletContext()) is ActionKind.CONNECT_WALLET

    def test_low_balance_is_insufficient(self):
        snapshot = _snapshot(user_balance=Decimal("0.5"), user_allowance=Decimal(0))
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.INSUFFICIENT_BALANCE

    def test_balance_without_allowance_approves(self):
        snapshot = _snapshot(user_balance=Decimal(5), user_allowance=Decimal(0))
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.APPROVE

    def test_approval_confirmed_then_deposit(self):
        """After approval settles, re-resolution with allowance offers Deposit."""
        before = _snapshot(user_balance=Decimal(5), user_allowance=Decimal(0))
        after = replace(before, user_allowance=Decimal(5))
        assert resolve_kind(before, CONNECTED) is ActionKind.APPROVE
        assert resolve_kind(after, CONNECTED) is ActionKind.DEPOSIT

    def test_closed_round_leader_withdraws(self):
        snapshot = _snapshot(remaining_time_ms=0, current_leader=USER)
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.WITHDRAW

    def test_closed_round_leader_match_ignores_case(self):
        snapshot = _snapshot(remaining_time_ms=0, current_leader=USER.lower())
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.WITHDRAW

    def test_closed_round_other_address_is_game_closed(self):
        snapshot = _snapshot(remaining_time_ms=0, current_leader=OTHER)
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.GAME_CLOSED

    def test_closed_round_outranks_balance(self):
        snapshot = _snapshot(remaining_time_ms=0, user_balance=Decimal(0))
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.GAME_CLOSED

    def test_unknown_balance_is_insufficient(self):
        snapshot = _snapshot(user_balance=None, user_allowance=None)
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.INSUFFICIENT_BALANCE

    def test_unknown_allowance_approves(self):
        snapshot = _snapshot(user_allowance=None)
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.APPROVE

    def test_exactly_one_unit_deposits(self):
        snapshot = _snapshot(user_balance=Decimal(1), user_allowance=Decimal(1))
        assert resolve_kind(snapshot, CONNECTED) is ActionKind.DEPOSIT


@pytest.mark.parametrize(
    "address,remaining,leader,balance,allowance",
    list(
        product(
            [None, USER],
            [0, 1000],
            [USER, OTHER, "0x0000000000000000000000000000000000000000"],
            [None, Decimal(0), Decimal("0.5"), Decimal(5)],
            [None, Decimal(0), Decimal(5)],
        )
    ),
)
def test_resolver_is_total(address, remaining, leader, balance, allowance):
    """Every combination produces exactly one well-formed action."""
    snapshot = _snapshot(
        remaining_time_ms=remaining,
        current_leader=leader,
        user_balance=balance,
        user_allowance=allowance,
    )
    action = resolve_action(snapshot, WalletContext(address=address))

    assert isinstance(action.kind, ActionKind)
    if action.kind is ActionKind.DEPOSIT:
        assert balance is not None and balance >= 1
        assert allowance is not None and allowance >= 1
    if action.kind is ActionKind.APPROVE:
        assert balance is not None and balance >= 1
        assert allowance is None or allowance < 1


class TestProgressAndHandlers:
    """In-progress suppression and handler attachment."""

    def test_same_kind_record_marks_in_progress(self):
        snapshot = _snapshot(user_allowance=Decimal(0))
        records = {
            TransactionKind.APPROVE: TransactionRecord(
                kind=TransactionKind.APPROVE, state=TransactionState.CONFIRMING
            )
        }
        action = resolve_action(snapshot, CONNECTED, records)

        assert action.kind is ActionKind.APPROVE
        assert action.in_progress
        assert action.label == "Confirming Allowance..."
        assert not action.enabled

    def test_other_kind_record_does_not_suppress(self):
        records = {
            TransactionKind.WITHDRAW: TransactionRecord(
                kind=TransactionKind.WITHDRAW, state=TransactionState.SUBMITTED
            )
        }
        action = resolve_action(_snapshot(), CONNECTED, records)

        assert action.kind is ActionKind.DEPOSIT
        assert not action.in_progress

    def test_failed_record_is_not_in_progress(self):
        records = {
            TransactionKind.DEPOSIT: TransactionRecord(
                kind=TransactionKind.DEPOSIT, state=TransactionState.FAILED
            )
        }
        assert not resolve_action(_snapshot(), CONNECTED, records).in_progress

    def test_handler_attached_to_actionable_kind(self):
        async def deposit():
            return None

        handlers = {ActionKind.DEPOSIT: deposit}
        action = resolve_action(_snapshot(), CONNECTED, handlers=handlers)

        assert action.handler is deposit
        assert action.enabled
        assert action.label == "Deposit 1 USDC"

    def test_non_actionable_kind_never_carries_handler(self):
        async def anything():
            return None

        handlers = {kind: anything for kind in ActionKind}
        action = resolve_action(_snapshot(), WalletContext(), handlers=handlers)

        assert action.kind is ActionKind.CONNECT_WALLET
        assert action.handler is None
        assert not action.enabled

    def test_resolution_is_stateless(self):
        snapshot = _snapshot()
        first = resolve_action(snapshot, CONNECTED)
        resolve_action(snapshot, WalletContext())
        assert resolve_action(snapshot, CONNECTED) == first
