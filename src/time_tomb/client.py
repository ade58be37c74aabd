"""Time Tomb client: wires reader, scheduler, clock and transactions together."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from types import TracebackType

from web3 import AsyncWeb3

from .clock import CountdownClock
from .config import TimeTombConfig
from .connections import Web3Connections
from .constants import get_chain_name
from .exceptions import ReadError
from .reader import ContractStateReader
from .resolver import resolve_action
from .scheduler import RefreshScheduler
from .store import EventType, Listener, StateStore, StoreEvent
from .transactions import TransactionLifecycleController
from .types import (
    Address,
    ContractSnapshot,
    CountdownDisplay,
    TransactionKind,
    TransactionRecord,
    UserAction,
    WalletContext,
)
from .utils import truncate_address
from .wallet import WalletConnector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewState:
    """Everything a presentation layer needs for one render."""

    snapshot: ContractSnapshot
    action: UserAction
    countdown: CountdownDisplay
    wallet: WalletContext
    records: dict[TransactionKind, TransactionRecord]
    is_loading: bool
    read_error: ReadError | None
    has_snapshot: bool
    celebrating: bool
    chain_id: int
    network_name: str
    leader_label: str


def leader_label(snapshot: ContractSnapshot, address: Address | None) -> str:
    if not snapshot.has_leader:
        return "No deposits yet"
    if snapshot.is_leader(address):
        return "You are the leader!"
    return truncate_address(snapshot.current_leader)


class TimeTombClient:
    """Keep a live view of the pot and drive the user's transactions.

    Use as an async context manager; timers and receipt watches are started
    on entry and released on exit.
    """

    def __init__(
        self,
        config: TimeTombConfig,
        *,
        wallet: WalletConnector | None = None,
        web3: AsyncWeb3 | None = None,
        time_source: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._connections = Web3Connections(config, web3=web3)
        self._store = StateStore()
        self._reader = ContractStateReader(config, self._connections)
        self._scheduler = RefreshScheduler(self._refresh, interval=config.refresh_interval)
        self._transactions = TransactionLifecycleController(
            config,
            self._connections,
            self._store,
            self._scheduler.request_refresh,
            wallet=wallet,
        )
        self._clock = CountdownClock(
            self._store.set_countdown,
            tick_interval=config.tick_interval,
            reference_window=config.round_window,
            time_source=time_source,
        )
        self._last_action: UserAction | None = None
        self._started = False
        self._store.subscribe(self._on_snapshot, [EventType.SNAPSHOT_UPDATED])
        self._store.subscribe(
            self._on_state_change,
            [EventType.SNAPSHOT_UPDATED, EventType.TRANSACTION_UPDATED],
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        if self._started:
            return
        await self._connections.connect()
        self._started = True
        await self._scheduler.refresh_now()
        self._scheduler.start()
        logger.info("Time Tomb client started for pot %s", self._config.pot_address)

    async def close(self) -> None:
        self._started = False
        await self._transactions.close()
        await self._scheduler.close()
        self._clock.stop()
        await self._connections.disconnect()
        logger.info("Time Tomb client stopped")

    async def __aenter__(self) -> TimeTombClient:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------
    @property
    def wallet(self) -> WalletContext:
        return self._transactions.wallet.context()

    def set_wallet(self, wallet: WalletConnector | None) -> None:
        """Attach or detach a wallet; user fields are re-read right away."""

        self._transactions.set_wallet(wallet)
        self._on_state_change(None)
        if self._started:
            self._scheduler.request_refresh()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    @property
    def connections(self) -> Web3Connections:
        return self._connections

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def snapshot(self) -> ContractSnapshot:
        return self._store.snapshot

    def subscribe(
        self, listener: Listener, types: Iterable[EventType] | None = None
    ) -> Callable[[], None]:
        return self._store.subscribe(listener, types)

    async def refresh(self) -> None:
        await self._scheduler.refresh_now()

    def current_action(self) -> UserAction:
        wallet = self.wallet
        return resolve_action(
            self._snapshot_for(wallet),
            wallet,
            self._store.records,
            self._transactions.handlers(),
        )

    def view_state(self) -> ViewState:
        wallet = self.wallet
        snapshot = self._snapshot_for(wallet)
        chain_id = self._connections.chain_id or self._config.chain_id
        return ViewState(
            snapshot=snapshot,
            action=self.current_action(),
            countdown=self._store.countdown,
            wallet=wallet,
            records=self._store.records,
            is_loading=self._store.is_loading,
            read_error=self._store.read_error,
            has_snapshot=self._store.has_snapshot,
            celebrating=self._store.celebrating,
            chain_id=chain_id,
            network_name=get_chain_name(chain_id),
            leader_label=leader_label(snapshot, wallet.address),
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------
    @property
    def transactions(self) -> TransactionLifecycleController:
        return self._transactions

    async def submit_approval(self) -> TransactionRecord | None:
        return await self._transactions.submit_approval()

    async def submit_deposit(self) -> TransactionRecord | None:
        return await self._transactions.submit_deposit()

    async def submit_withdraw(self) -> TransactionRecord | None:
        return await self._transactions.submit_withdraw()

    def acknowledge(self, kind: TransactionKind) -> bool:
        return self._transactions.acknowledge(kind)

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    async def _refresh(self) -> None:
        address = self.wallet.address
        self._store.set_loading(True)
        try:
            result = await self._reader.read(address, self._store.snapshot)
        except ReadError as exc:
            logger.warning("Contract state refresh failed: %s", exc.message)
            self._store.record_read_error(exc)
            return
        finally:
            self._store.set_loading(False)
        self._store.apply_read(result)

    def _snapshot_for(self, wallet: WalletContext) -> ContractSnapshot:
        snapshot = self._store.snapshot
        address = wallet.address
        if address is not None and snapshot.user_address is not None:
            if address.lower() == snapshot.user_address.lower():
                return snapshot
        if snapshot.user_allowance is None and snapshot.user_balance is None:
            return snapshot
        return replace(snapshot, user_allowance=None, user_balance=None)

    def _on_snapshot(self, event: StoreEvent) -> None:
        snapshot: ContractSnapshot = event.payload
        self._clock.set_end_timestamp(snapshot.game_end_timestamp)

    def _on_state_change(self, event: StoreEvent | None) -> None:
        action = self.current_action()
        previous = self._last_action
        if previous is not None and (previous.kind, previous.in_progress, previous.label) == (
            action.kind,
            action.in_progress,
            action.label,
        ):
            return
        self._last_action = action
        self._store.publish(EventType.ACTION_CHANGED, action)
