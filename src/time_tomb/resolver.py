"""Derive the single user action for the current state."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from .constants import DEPOSIT_UNIT, TOKEN_SYMBOL
from .types import (
    ActionHandler,
    ActionKind,
    ContractSnapshot,
    TransactionKind,
    TransactionRecord,
    UserAction,
    WalletContext,
)

_LABELS = {
    ActionKind.CONNECT_WALLET: "Connect Wallet to Deposit",
    ActionKind.INSUFFICIENT_BALANCE: f"Insufficient {TOKEN_SYMBOL} Balance",
    ActionKind.APPROVE: f"Approve {TOKEN_SYMBOL}",
    ActionKind.DEPOSIT: f"Deposit 1 {TOKEN_SYMBOL}",
    ActionKind.WITHDRAW: "Withdraw Pot",
    ActionKind.GAME_CLOSED: "Game Closed",
}

_PROGRESS_LABELS = {
    ActionKind.APPROVE: "Confirming Allowance...",
    ActionKind.DEPOSIT: "Confirming Deposit...",
    ActionKind.WITHDRAW: "Confirming Withdrawal...",
}


def _below_unit(amount: Decimal | None) -> bool:
    return amount is None or amount < DEPOSIT_UNIT


def resolve_kind(snapshot: ContractSnapshot, wallet: WalletContext) -> ActionKind:
    """Evaluate the decision table; the first matching row wins."""

    address = wallet.address
    if address is None:
        return ActionKind.CONNECT_WALLET
    if snapshot.remaining_time_ms == 0 and snapshot.is_leader(address):
        return ActionKind.WITHDRAW
    if snapshot.remaining_time_ms == 0:
        return ActionKind.GAME_CLOSED
    if _below_unit(snapshot.user_balance):
        return ActionKind.INSUFFICIENT_BALANCE
    if _below_unit(snapshot.user_allowance):
        return ActionKind.APPROVE
    return ActionKind.DEPOSIT


def resolve_action(
    snapshot: ContractSnapshot,
    wallet: WalletContext,
    records: Mapping[TransactionKind, TransactionRecord] | None = None,
    handlers: Mapping[ActionKind, ActionHandler] | None = None,
) -> UserAction:
    """Return exactly one action for the given snapshot, wallet and records.

    Actionable kinds are marked in progress while a record of the same kind
    is submitted or confirming. Non-actionable kinds never carry a handler.
    """

    kind = resolve_kind(snapshot, wallet)
    if not kind.is_actionable:
        return UserAction(kind=kind, label=_LABELS[kind])

    transaction_kind = kind.transaction_kind
    record = (records or {}).get(transaction_kind) if transaction_kind else None
    in_progress = record is not None and record.is_active
    label = _PROGRESS_LABELS[kind] if in_progress else _LABELS[kind]
    handler = (handlers or {}).get(kind)
    return UserAction(kind=kind, label=label, in_progress=in_progress, handler=handler)
