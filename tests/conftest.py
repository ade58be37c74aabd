from __future__ import annotations

import pytest
from fakes import CHAIN_ID, POT, TOKEN, FakeChain, FakeWeb3

from time_tomb.config import TimeTombConfig


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def fake_web3(chain: FakeChain) -> FakeWeb3:
    return FakeWeb3(chain)


@pytest.fixture
def config() -> TimeTombConfig:
    return TimeTombConfig(
        pot_address=POT,
        token_address=TOKEN,
        chain_id=CHAIN_ID,
        rpc_url="https://rpc.invalid",
        refresh_interval=60.0,
        celebration_delay=0.05,
        receipt_timeout=1.0,
    )
