"""Type definitions and data models for the Time Tomb client."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from web3.types import ChecksumAddress

from .constants import ZERO_ADDRESS

Address = str  # Ethereum address, checksummed where it leaves the package


class TransactionKind(str, Enum):
    """Write operations the client can submit."""

    APPROVE = "approve"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TransactionState(str, Enum):
    """Lifecycle of a locally tracked transaction."""

    IDLE = "idle"
    SUBMITTED = "submitted"
    CONFIRMING = "confirming"
    CONFIRMED = "confirmed"
    FAILED = "failed"


ACTIVE_STATES = frozenset({TransactionState.SUBMITTED, TransactionState.CONFIRMING})
TERMINAL_STATES = frozenset({TransactionState.CONFIRMED, TransactionState.FAILED})


class ActionKind(str, Enum):
    """The single user action offered for the current state."""

    CONNECT_WALLET = "connect_wallet"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    APPROVE = "approve"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    GAME_CLOSED = "game_closed"

    @property
    def is_actionable(self) -> bool:
        return self in _ACTIONABLE

    @property
    def transaction_kind(self) -> TransactionKind | None:
        return _ACTION_TO_TRANSACTION.get(self)


_ACTION_TO_TRANSACTION = {
    ActionKind.APPROVE: TransactionKind.APPROVE,
    ActionKind.DEPOSIT: TransactionKind.DEPOSIT,
    ActionKind.WITHDRAW: TransactionKind.WITHDRAW,
}
_ACTIONABLE = frozenset(_ACTION_TO_TRANSACTION)


class Urgency(str, Enum):
    """Countdown colour tier."""

    CALM = "calm"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class WalletContext:
    """Identity supplied by the wallet connector."""

    address: ChecksumAddress | None = None
    chain_id: int | None = None

    @property
    def is_connected(self) -> bool:
        return self.address is not None


@dataclass(frozen=True)
class ContractSnapshot:
    """Point-in-time view of the pot and the connected user's token position."""

    total_deposited: Decimal
    remaining_time_ms: int
    game_end_timestamp: int
    current_leader: Address
    contract_balance: Decimal
    user_allowance: Decimal | None = None
    user_balance: Decimal | None = None
    fetched_at: float = field(default_factory=time.time)
    sequence: int = 0
    user_address: Address | None = None

    @classmethod
    def empty(cls) -> ContractSnapshot:
        """Snapshot used before the first successful read."""

        return cls(
            total_deposited=Decimal(0),
            remaining_time_ms=0,
            game_end_timestamp=0,
            current_leader=ZERO_ADDRESS,
            contract_balance=Decimal(0),
            fetched_at=0.0,
        )

    @property
    def has_leader(self) -> bool:
        return int(self.current_leader, 16) != 0

    @property
    def is_closed(self) -> bool:
        return self.remaining_time_ms == 0

    def is_leader(self, address: Address | None) -> bool:
        if address is None or not self.has_leader:
            return False
        return address.lower() == self.current_leader.lower()


@dataclass
class TransactionRecord:
    """Local tracking state for one in-flight write."""

    kind: TransactionKind
    state: TransactionState = TransactionState.IDLE
    tx_hash: str | None = None
    error: str | None = None
    block_number: int | None = None
    created_at: float = field(default_factory=time.time)
    outcome: asyncio.Future[TransactionState] | None = field(default=None, repr=False)

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_STATES

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


ActionHandler = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class UserAction:
    """Resolved user action; actionable kinds may carry a handler."""

    kind: ActionKind
    label: str
    in_progress: bool = False
    handler: ActionHandler | None = field(default=None, compare=False, repr=False)

    @property
    def is_actionable(self) -> bool:
        return self.kind.is_actionable

    @property
    def enabled(self) -> bool:
        return self.is_actionable and not self.in_progress and self.handler is not None


@dataclass(frozen=True)
class CountdownDisplay:
    """Remaining time broken into display units."""

    days: int
    hours: int
    minutes: int
    seconds: int
    total_ms: int
    progress: float

    @classmethod
    def closed(cls) -> CountdownDisplay:
        return cls(days=0, hours=0, minutes=0, seconds=0, total_ms=0, progress=0.0)

    @property
    def is_open(self) -> bool:
        return self.total_ms > 0

    @property
    def urgency(self) -> Urgency:
        if self.progress < 25:
            return Urgency.CRITICAL
        if self.progress < 50:
            return Urgency.WARNING
        return Urgency.CALM

    def as_labels(self) -> dict[str, str]:
        """Two-digit strings keyed by unit."""

        return {
            "days": f"{self.days:02d}",
            "hours": f"{self.hours:02d}",
            "minutes": f"{self.minutes:02d}",
            "seconds": f"{self.seconds:02d}",
        }


@dataclass(frozen=True)
class ReadResult:
    """Outcome of one batched read, already merged with the previous snapshot."""

    sequence: int
    snapshot: ContractSnapshot
    failed_fields: frozenset[str] = frozenset()

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_fields)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """Transient user-facing notification."""

    level: NoticeLevel
    title: str
    description: str | None = None
    duration_ms: int | None = None
