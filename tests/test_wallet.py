"""Tests for the wallet connectors."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from eth_account import Account
from fakes import CHAIN_ID, POT, FakeEth, FakeWeb3
from hexbytes import HexBytes

from time_tomb.connections import Web3Connections
from time_tomb.exceptions import TransactionError, ValidationError
from time_tomb.wallet import DisconnectedWallet, LocalAccountWallet

PRIVATE_KEY = "0x" + "11" * 32


class SigningEth(FakeEth):
    def __init__(self, chain, chain_id: int, *, base_fee: int | None = 7) -> None:
        super().__init__(chain, chain_id)
        self.base_fee = base_fee
        self.raw: list[bytes] = []
        self.fail_send: Exception | None = None

    async def get_transaction_count(self, address: str, block: str) -> int:
        return 4

    async def estimate_gas(self, tx: Any) -> int:
        return 50_000

    @property
    def max_priority_fee(self) -> Any:
        async def value() -> int:
            return 2

        return value()

    @property
    def gas_price(self) -> Any:
        async def value() -> int:
            return 11

        return value()

    async def get_block(self, identifier: str) -> dict:
        if self.base_fee is None:
            return {}
        return {"baseFeePerGas": self.base_fee}

    async def send_raw_transaction(self, raw: bytes) -> HexBytes:
        if self.fail_send is not None:
            raise self.fail_send
        self.raw.append(bytes(raw))
        return HexBytes(b"\xab" * 32)


def _wallet(config, chain, *, base_fee: int | None = 7) -> tuple[LocalAccountWallet, SigningEth]:
    web3 = FakeWeb3(chain)
    eth = SigningEth(chain, CHAIN_ID, base_fee=base_fee)
    web3.eth = eth
    connections = Web3Connections(config, web3=web3)  # type: ignore[arg-type]
    return LocalAccountWallet(PRIVATE_KEY, connections), eth


def _deposit_tx() -> dict:
    return {"to": POT, "data": HexBytes(b"\xd0\xe3\x0d\xb0"), "value": 0}


def test_local_wallet_signs_eip1559_transaction(config, chain):
    wallet, eth = _wallet(config, chain)

    async def scenario() -> str:
        await wallet.connections.connect()
        return await wallet.send_transaction(_deposit_tx())

    tx_hash = asyncio.run(scenario())

    assert tx_hash == "0x" + "ab" * 32
    assert len(eth.raw) == 1
    decoded = Account.recover_transaction(eth.raw[0])
    assert decoded == wallet.account.address
    assert wallet.context().address == wallet.account.address
    assert wallet.context().chain_id == CHAIN_ID


def test_local_wallet_falls_back_to_legacy_gas_price(config, chain):
    wallet, eth = _wallet(config, chain, base_fee=None)

    async def scenario() -> None:
        await wallet.connections.connect()
        await wallet.send_transaction(_deposit_tx())

    asyncio.run(scenario())

    assert Account.recover_transaction(eth.raw[0]) == wallet.account.address


def test_broadcast_failure_is_wrapped(config, chain):
    wallet, eth = _wallet(config, chain)
    eth.fail_send = RuntimeError("nonce too low")

    async def scenario() -> None:
        await wallet.connections.connect()
        await wallet.send_transaction(_deposit_tx())

    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(scenario())

    assert excinfo.value.details["error"] == "nonce too low"


def test_invalid_private_key_is_rejected(config, fake_web3):
    connections = Web3Connections(config, web3=fake_web3)  # type: ignore[arg-type]

    with pytest.raises(ValidationError) as excinfo:
        LocalAccountWallet("0x1234", connections)

    assert excinfo.value.field == "private_key"


def test_disconnected_wallet_refuses_to_send():
    wallet = DisconnectedWallet()

    assert not wallet.context().is_connected
    with pytest.raises(TransactionError):
        asyncio.run(wallet.send_transaction(_deposit_tx()))
