"""Transaction submission and confirmation tracking for the Time Tomb client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from hexbytes import HexBytes
from web3.contract import AsyncContract
from web3.exceptions import TimeExhausted
from web3.types import TxParams

from .config import TimeTombConfig
from .constants import APPROVAL_CEILING
from .connections import Web3Connections
from .exceptions import ConfirmationTimeout, TimeTombError, TransactionError
from .store import StateStore
from .types import (
    ActionHandler,
    ActionKind,
    Notice,
    NoticeLevel,
    TransactionKind,
    TransactionRecord,
    TransactionState,
)
from .utils import serialise_receipt, to_token_units
from .wallet import DisconnectedWallet, WalletConnector

logger = logging.getLogger(__name__)

ERROR_NOTICE_DURATION_MS = 4000


@dataclass
class TxRequest:
    """Contract call to submit for one transaction kind."""

    kind: TransactionKind
    contract: AsyncContract
    function: str
    args: list[Any] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    def to_tx(self) -> TxParams:
        data = self.contract.encode_abi(self.function, args=self.args)
        return {"to": self.contract.address, "data": HexBytes(data), "value": 0}


class TransactionLifecycleController:
    """Submit approve/deposit/withdraw and follow each one to settlement.

    Only one record per kind is tracked. A record is created in SUBMITTED
    when the user triggers the action, moves to CONFIRMING once the wallet
    returns a hash, and ends CONFIRMED or FAILED. Confirmed records are
    cleared after their side effects run; failed ones stay until
    acknowledged.
    """

    def __init__(
        self,
        config: TimeTombConfig,
        connections: Web3Connections,
        store: StateStore,
        request_refresh: Callable[[], Any],
        *,
        wallet: WalletConnector | None = None,
    ) -> None:
        self._config = config
        self._connections = connections
        self._store = store
        self._request_refresh = request_refresh
        self._wallet: WalletConnector = wallet or DisconnectedWallet()
        self._watches: dict[TransactionKind, asyncio.Task[None]] = {}
        self._celebration_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------
    @property
    def wallet(self) -> WalletConnector:
        return self._wallet

    def set_wallet(self, wallet: WalletConnector | None) -> None:
        self._wallet = wallet or DisconnectedWallet()

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------
    async def submit_approval(self) -> TransactionRecord | None:
        amount = to_token_units(APPROVAL_CEILING, self._config.token_decimals)
        request = TxRequest(
            kind=TransactionKind.APPROVE,
            contract=self._connections.token_contract,
            function="approve",
            args=[self._config.pot_address, amount],
            context={"spender": self._config.pot_address, "amount": amount},
        )
        return await self._submit(request)

    async def submit_deposit(self) -> TransactionRecord | None:
        approval = self._store.get_record(TransactionKind.APPROVE)
        if approval is not None and approval.state is TransactionState.FAILED:
            self._store.clear_record(TransactionKind.APPROVE)
            approval = None
        if approval is not None and approval.is_active:
            logger.info("Deposit refused while approval %s is pending", approval.tx_hash)
            self._store.notify(
                Notice(
                    NoticeLevel.INFO,
                    "Approval still confirming",
                    description="Deposit once the allowance is confirmed",
                )
            )
            return None

        request = TxRequest(
            kind=TransactionKind.DEPOSIT,
            contract=self._connections.pot_contract,
            function="deposit",
        )
        return await self._submit(request)

    async def submit_withdraw(self) -> TransactionRecord | None:
        request = TxRequest(
            kind=TransactionKind.WITHDRAW,
            contract=self._connections.pot_contract,
            function="withdraw",
        )
        return await self._submit(request)

    def acknowledge(self, kind: TransactionKind) -> bool:
        """Clear a failed record so the action can be offered again."""

        record = self._store.get_record(kind)
        if record is None or record.state != TransactionState.FAILED:
            return False
        self._store.clear_record(kind)
        return True

    def handlers(self) -> dict[ActionKind, ActionHandler]:
        return {
            ActionKind.APPROVE: self.submit_approval,
            ActionKind.DEPOSIT: self.submit_deposit,
            ActionKind.WITHDRAW: self.submit_withdraw,
        }

    async def close(self) -> None:
        """Stop tracking; transactions already broadcast are not affected."""

        tasks: list[asyncio.Task[None]] = list(self._watches.values())
        if self._celebration_task is not None:
            tasks.append(self._celebration_task)
        self._watches.clear()
        self._celebration_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("Abandoned tracking of %s pending task(s)", len(tasks))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def _submit(self, request: TxRequest) -> TransactionRecord:
        existing = self._store.get_record(request.kind)
        if existing is not None and existing.is_active:
            logger.info("%s already in flight; ignoring duplicate submission", request.kind.value)
            return existing

        loop = asyncio.get_running_loop()
        record = TransactionRecord(
            kind=request.kind,
            state=TransactionState.SUBMITTED,
            outcome=loop.create_future(),
        )
        self._store.put_record(record)
        logger.info("Dispatching %s via %s", request.kind.value, request.function)

        try:
            tx_hash = await self._wallet.send_transaction(request.to_tx())
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._fail(record, self._as_transaction_error(exc, record, "Transaction was not sent"))
            return record

        record.tx_hash = tx_hash
        record.state = TransactionState.CONFIRMING
        self._store.put_record(record)
        logger.info("Transaction sent for action=%s hash=%s", request.kind.value, tx_hash)

        self._watches[request.kind] = loop.create_task(self._watch(record))
        return record

    async def _watch(self, record: TransactionRecord) -> None:
        web3 = self._connections.web3
        try:
            receipt = await web3.eth.wait_for_transaction_receipt(
                HexBytes(str(record.tx_hash)), timeout=self._config.receipt_timeout
            )
        except asyncio.CancelledError:
            raise
        except TimeExhausted as exc:
            self._fail(
                record,
                ConfirmationTimeout(
                    "Transaction was not confirmed in time",
                    kind=record.kind,
                    tx_hash=record.tx_hash,
                    details={"timeout": self._config.receipt_timeout},
                ),
                cause=exc,
            )
            return
        except Exception as exc:
            self._fail(record, self._as_transaction_error(exc, record, "Failed to fetch receipt"))
            return
        finally:
            if self._watches.get(record.kind) is asyncio.current_task():
                del self._watches[record.kind]

        block_number = receipt.get("blockNumber")
        if receipt.get("status", 0) != 1:
            self._fail(
                record,
                TransactionError(
                    "Transaction reverted",
                    kind=record.kind,
                    tx_hash=record.tx_hash,
                    details={"receipt": serialise_receipt(receipt)},
                ),
            )
            return

        logger.info(
            "Transaction confirmed for action=%s hash=%s block=%s",
            record.kind.value,
            record.tx_hash,
            block_number,
        )
        record.block_number = block_number
        self._settle(record)

    def _settle(self, record: TransactionRecord) -> None:
        record.state = TransactionState.CONFIRMED
        self._store.put_record(record)
        self._resolve_outcome(record)
        self._request_refresh()

        if record.kind is TransactionKind.DEPOSIT:
            self._celebrate(record)
            return

        if record.kind is TransactionKind.WITHDRAW:
            self._store.notify(
                Notice(
                    NoticeLevel.SUCCESS,
                    "Pot withdrawn!",
                    description="The accumulated deposits are on their way to your wallet",
                )
            )
        self._reset(record)

    def _celebrate(self, record: TransactionRecord) -> None:
        if self._celebration_task is not None:
            self._celebration_task.cancel()
        self._store.set_celebrating(True)
        self._celebration_task = asyncio.get_running_loop().create_task(
            self._end_celebration(record)
        )

    async def _end_celebration(self, record: TransactionRecord) -> None:
        await asyncio.sleep(self._config.celebration_delay)
        self._store.set_celebrating(False)
        self._reset(record)
        self._celebration_task = None

    def _reset(self, record: TransactionRecord) -> None:
        if self._store.get_record(record.kind) is record:
            self._store.clear_record(record.kind)
        record.state = TransactionState.IDLE

    def _fail(
        self,
        record: TransactionRecord,
        error: TransactionError,
        *,
        cause: BaseException | None = None,
    ) -> None:
        logger.warning(
            "Transaction %s failed (hash=%s): %s",
            record.kind.value,
            record.tx_hash,
            error.message,
            exc_info=cause,
        )
        record.state = TransactionState.FAILED
        record.error = error.message
        self._store.put_record(record)
        self._resolve_outcome(record)
        self._store.notify(
            Notice(
                NoticeLevel.ERROR,
                error.message,
                description="Please try again",
                duration_ms=ERROR_NOTICE_DURATION_MS,
            )
        )

    @staticmethod
    def _resolve_outcome(record: TransactionRecord) -> None:
        if record.outcome is not None and not record.outcome.done():
            record.outcome.set_result(record.state)

    @staticmethod
    def _as_transaction_error(
        exc: Exception, record: TransactionRecord, fallback: str
    ) -> TransactionError:
        if isinstance(exc, TransactionError):
            exc.kind = exc.kind or record.kind
            exc.tx_hash = exc.tx_hash or record.tx_hash
            return exc
        message = exc.message if isinstance(exc, TimeTombError) else str(exc) or fallback
        return TransactionError(
            message,
            kind=record.kind,
            tx_hash=record.tx_hash,
            details={"error": str(exc), "type": type(exc).__name__},
        )

    @property
    def pending_kinds(self) -> Sequence[TransactionKind]:
        return tuple(self._watches)
