"""Batched contract state reads for the Time Tomb client."""

from __future__ import annotations

import itertools
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from eth_abi import decode as abi_decode
from hexbytes import HexBytes
from web3 import Web3
from web3.contract import AsyncContract

from .config import TimeTombConfig
from .connections import Web3Connections
from .exceptions import NetworkError, ReadError
from .types import Address, ContractSnapshot, ReadResult
from .utils import from_token_units

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ReadCall:
    field: str
    contract: AsyncContract
    function: str
    args: tuple[Any, ...]
    output_type: str
    convert: Callable[[Any], Any]


class ContractStateReader:
    """Issue one multicall per refresh and normalise it into a snapshot.

    Every call is numbered when issued. The numbers only grow, so a consumer
    can tell which of two overlapping responses is newer regardless of the
    order in which they arrive.
    """

    def __init__(self, config: TimeTombConfig, connections: Web3Connections) -> None:
        self._config = config
        self._connections = connections
        self._sequence = itertools.count(1)
        self._last_issued = 0

    @property
    def last_issued(self) -> int:
        return self._last_issued

    async def read(
        self,
        wallet_address: Address | None,
        previous: ContractSnapshot | None = None,
    ) -> ReadResult:
        sequence = next(self._sequence)
        self._last_issued = sequence

        try:
            self._connections.ensure_connected()
        except NetworkError as exc:
            raise ReadError(
                "Cannot read contract state while disconnected",
                sequence=sequence,
                details={"endpoint": exc.endpoint},
            ) from exc

        calls = self._build_calls(wallet_address)
        payload = [(call.contract.address, True, self._encode(call)) for call in calls]

        try:
            raw_results = await self._connections.multicall_contract.functions.aggregate3(
                payload
            ).call()
        except Exception as exc:
            logger.warning("Batched read #%s failed: %s", sequence, exc)
            raise ReadError(
                "Failed to read contract state",
                sequence=sequence,
                failed_fields=frozenset(call.field for call in calls),
                details={"error": str(exc)},
            ) from exc

        values, failed = self._decode_results(calls, raw_results)
        if not values:
            raise ReadError(
                "Every contract read in the batch failed",
                sequence=sequence,
                failed_fields=frozenset(failed),
            )
        if failed:
            logger.warning("Batched read #%s partially failed: %s", sequence, sorted(failed))

        snapshot = self._merge(values, wallet_address, previous, sequence)
        return ReadResult(sequence=sequence, snapshot=snapshot, failed_fields=frozenset(failed))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _build_calls(self, wallet_address: Address | None) -> list[_ReadCall]:
        pot = self._connections.pot_contract
        token = self._connections.token_contract
        pot_address = self._config.pot_address
        decimals = self._config.token_decimals

        def to_tokens(value: Any) -> Any:
            return from_token_units(int(value), decimals)

        calls = [
            _ReadCall("total_deposited", pot, "totalDeposited", (), "uint256", to_tokens),
            _ReadCall(
                "remaining_time_ms",
                pot,
                "getRemainingTime",
                (),
                "uint256",
                lambda value: max(0, int(value)) * 1000,
            ),
            _ReadCall("game_end_timestamp", pot, "gameEndTime", (), "uint256", int),
            _ReadCall(
                "current_leader", pot, "currentLeader", (), "address", Web3.to_checksum_address
            ),
            _ReadCall("contract_balance", token, "balanceOf", (pot_address,), "uint256", to_tokens),
        ]
        if wallet_address:
            calls.append(
                _ReadCall(
                    "user_allowance",
                    token,
                    "allowance",
                    (wallet_address, pot_address),
                    "uint256",
                    to_tokens,
                )
            )
            calls.append(
                _ReadCall("user_balance", token, "balanceOf", (wallet_address,), "uint256", to_tokens)
            )
        return calls

    @staticmethod
    def _encode(call: _ReadCall) -> HexBytes:
        return HexBytes(call.contract.encode_abi(call.function, args=list(call.args)))

    def _decode_results(
        self, calls: Sequence[_ReadCall], raw_results: Sequence[Any]
    ) -> tuple[dict[str, Any], set[str]]:
        values: dict[str, Any] = {}
        failed: set[str] = set()

        if len(raw_results) != len(calls):
            logger.warning(
                "Multicall returned %s results for %s calls", len(raw_results), len(calls)
            )

        for index, call in enumerate(calls):
            if index >= len(raw_results):
                failed.add(call.field)
                continue
            success, return_data = raw_results[index]
            if not success or not return_data:
                failed.add(call.field)
                continue
            try:
                (decoded,) = abi_decode([call.output_type], bytes(return_data))
                values[call.field] = call.convert(decoded)
            except Exception as exc:
                logger.debug("Failed to decode %s: %s", call.field, exc)
                failed.add(call.field)

        return values, failed

    def _merge(
        self,
        values: dict[str, Any],
        wallet_address: Address | None,
        previous: ContractSnapshot | None,
        sequence: int,
    ) -> ContractSnapshot:
        base = previous or ContractSnapshot.empty()
        fields: dict[str, Any] = {
            "total_deposited": base.total_deposited,
            "remaining_time_ms": base.remaining_time_ms,
            "game_end_timestamp": base.game_end_timestamp,
            "current_leader": base.current_leader,
            "contract_balance": base.contract_balance,
            "user_allowance": None,
            "user_balance": None,
        }

        same_user = (
            wallet_address is not None
            and base.user_address is not None
            and wallet_address.lower() == base.user_address.lower()
        )
        if same_user:
            fields["user_allowance"] = base.user_allowance
            fields["user_balance"] = base.user_balance

        fields.update(values)
        return ContractSnapshot(
            **fields,
            fetched_at=time.time(),
            sequence=sequence,
            user_address=wallet_address,
        )
