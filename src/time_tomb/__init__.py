"""Time Tomb client - live state and transactions for the timed-pot contract.

This library keeps a polled view of a Time Tomb pot contract, derives the
single action the connected user can take, and follows approve, deposit and
withdraw transactions through to settlement.
"""

from .client import TimeTombClient, ViewState, leader_label
from .clock import CountdownClock, compute_countdown
from .config import TimeTombConfig
from .exceptions import (
    ConfirmationTimeout,
    NetworkError,
    ReadError,
    TimeTombError,
    TransactionError,
    ValidationError,
)
from .reader import ContractStateReader
from .resolver import resolve_action, resolve_kind
from .scheduler import RefreshScheduler
from .store import EventType, StateStore, StoreEvent
from .transactions import TransactionLifecycleController
from .types import (
    ActionKind,
    ContractSnapshot,
    CountdownDisplay,
    Notice,
    NoticeLevel,
    ReadResult,
    TransactionKind,
    TransactionRecord,
    TransactionState,
    Urgency,
    UserAction,
    WalletContext,
)
from .utils import from_token_units, to_token_units, truncate_address
from .wallet import DisconnectedWallet, LocalAccountWallet, WalletConnector

__version__ = "0.1.0"

__all__ = [
    # Client
    "TimeTombClient",
    "TimeTombConfig",
    "ViewState",
    "leader_label",
    # Components
    "ContractStateReader",
    "CountdownClock",
    "RefreshScheduler",
    "StateStore",
    "TransactionLifecycleController",
    "compute_countdown",
    "resolve_action",
    "resolve_kind",
    # Wallets
    "WalletConnector",
    "DisconnectedWallet",
    "LocalAccountWallet",
    # Types and enums
    "ActionKind",
    "ContractSnapshot",
    "CountdownDisplay",
    "EventType",
    "Notice",
    "NoticeLevel",
    "ReadResult",
    "StoreEvent",
    "TransactionKind",
    "TransactionRecord",
    "TransactionState",
    "Urgency",
    "UserAction",
    "WalletContext",
    # Exceptions
    "TimeTombError",
    "ConfirmationTimeout",
    "NetworkError",
    "ReadError",
    "TransactionError",
    "ValidationError",
    # Utility functions
    "to_token_units",
    "from_token_units",
    "truncate_address",
]
