"""Wallet connectors that sign and broadcast Time Tomb transactions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, cast

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3.types import TxParams

from .connections import Web3Connections
from .exceptions import NetworkError, TransactionError, ValidationError
from .types import WalletContext
from .utils import tx_hash_hex

logger = logging.getLogger(__name__)


class WalletConnector(ABC):
    """Wallet interface consumed by the transaction controller."""

    @abstractmethod
    def context(self) -> WalletContext:
        pass

    @abstractmethod
    async def send_transaction(self, tx: TxParams) -> str:
        """Sign and broadcast ``tx``; return the transaction hash."""
        pass


class DisconnectedWallet(WalletConnector):
    """Placeholder used until a real wallet is attached."""

    def context(self) -> WalletContext:
        return WalletContext()

    async def send_transaction(self, tx: TxParams) -> str:
        raise TransactionError("No wallet connected")


class LocalAccountWallet(WalletConnector):
    """Sign locally with a private key and broadcast raw transactions."""

    def __init__(self, private_key: str, connections: Web3Connections) -> None:
        try:
            self._account = cast(LocalAccount, Account.from_key(private_key))
        except Exception as exc:
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                details={"error": str(exc)},
            ) from exc
        self._connections = connections

    @property
    def account(self) -> LocalAccount:
        return self._account

    @property
    def connections(self) -> Web3Connections:
        return self._connections

    def context(self) -> WalletContext:
        return WalletContext(address=self._account.address, chain_id=self._connections.chain_id)

    async def send_transaction(self, tx: TxParams) -> str:
        self._connections.ensure_connected()
        web3 = self._connections.web3

        try:
            prepared = await self._prepare(dict(tx))
            signed = self._account.sign_transaction(prepared)
            tx_hash = await web3.eth.send_raw_transaction(signed.raw_transaction)
        except (NetworkError, ValidationError):
            raise
        except Exception as exc:
            raise TransactionError(
                "Failed to sign or broadcast transaction",
                details={"to": tx.get("to"), "error": str(exc)},
            ) from exc

        tx_hex = tx_hash_hex(tx_hash)
        logger.info("Broadcast transaction %s from %s", tx_hex, self._account.address)
        return tx_hex

    async def _prepare(self, tx: dict[str, Any]) -> TxParams:
        web3 = self._connections.web3
        address = self._account.address

        tx.setdefault("from", address)
        tx.setdefault("value", 0)
        if "chainId" not in tx:
            tx["chainId"] = self._connections.chain_id or await web3.eth.chain_id
        if "nonce" not in tx:
            tx["nonce"] = await web3.eth.get_transaction_count(address, "pending")
        if "gas" not in tx:
            tx["gas"] = await web3.eth.estimate_gas(cast(TxParams, tx))
        if "gasPrice" not in tx and "maxFeePerGas" not in tx:
            priority_fee = await web3.eth.max_priority_fee
            latest = await web3.eth.get_block("latest")
            base_fee = latest.get("baseFeePerGas")
            if base_fee is None:
                tx["gasPrice"] = await web3.eth.gas_price
            else:
                tx["maxPriorityFeePerGas"] = priority_fee
                tx["maxFeePerGas"] = int(base_fee) * 2 + int(priority_fee)
        return cast(TxParams, tx)
