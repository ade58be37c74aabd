"""Connection helpers for the Time Tomb client."""

from __future__ import annotations

import logging

from aiohttp import ClientTimeout
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.contract import AsyncContract

from .abi import ERC20_abi, Multicall3_abi, TimeTomb_abi
from .config import TimeTombConfig
from .exceptions import NetworkError, ValidationError

logger = logging.getLogger(__name__)


class Web3Connections:
    """Manage the async Web3 provider and contract handles."""

    def __init__(self, config: TimeTombConfig, *, web3: AsyncWeb3 | None = None):
        self.config = config.with_defaulted_urls()
        self._web3: AsyncWeb3 | None = web3
        self._owns_provider = web3 is None
        self._pot_contract: AsyncContract | None = None
        self._token_contract: AsyncContract | None = None
        self._multicall_contract: AsyncContract | None = None
        self._chain_id: int | None = None
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def connect(self) -> None:
        """Initialise the provider, verify the chain and build contract handles."""

        web3 = self._web3
        if web3 is None:
            web3 = self._build_web3_provider(str(self.config.rpc_url))
            self._web3 = web3

        try:
            reachable = await web3.is_connected()
        except Exception as exc:  # pragma: no cover
            raise NetworkError(
                "Unable to reach RPC endpoint",
                endpoint=self.config.rpc_url,
                details={"error": str(exc)},
            ) from exc
        if not reachable:
            raise NetworkError("Unable to connect to RPC", endpoint=self.config.rpc_url)

        try:
            chain_id = await web3.eth.chain_id
        except Exception as exc:  # pragma: no cover
            raise NetworkError(
                "Failed to read chain id",
                endpoint=self.config.rpc_url,
                details={"error": str(exc)},
            ) from exc

        if int(chain_id) != int(self.config.chain_id):
            raise ValidationError(
                "RPC endpoint serves a different chain than configured",
                field="chain_id",
                value=chain_id,
                details={"expected": self.config.chain_id},
            )

        self._chain_id = int(chain_id)
        self._pot_contract = web3.eth.contract(address=self.config.pot_address, abi=TimeTomb_abi)
        self._token_contract = web3.eth.contract(address=self.config.token_address, abi=ERC20_abi)
        self._multicall_contract = web3.eth.contract(
            address=self.config.multicall_address, abi=Multicall3_abi
        )
        self._connected = True
        logger.info("Connected to chain %s at %s", self._chain_id, self.config.rpc_url)

    async def disconnect(self) -> None:
        web3 = self._web3
        self._pot_contract = None
        self._token_contract = None
        self._multicall_contract = None
        self._chain_id = None
        self._connected = False

        if web3 is not None and self._owns_provider:
            self._web3 = None
            try:
                await web3.provider.disconnect()
            except Exception:  # pragma: no cover
                logger.debug("Provider disconnect failed", exc_info=True)

    def is_connected(self) -> bool:
        return self._connected and self._web3 is not None and self._pot_contract is not None

    def ensure_connected(self) -> None:
        if not self.is_connected():
            raise NetworkError("Time Tomb connector is not connected", endpoint=self.config.rpc_url)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def web3(self) -> AsyncWeb3:
        if self._web3 is None:
            raise NetworkError("RPC provider not connected", endpoint=self.config.rpc_url)
        return self._web3

    @property
    def pot_contract(self) -> AsyncContract:
        if self._pot_contract is None:
            raise NetworkError(
                "Pot contract not available; call connect() first",
                endpoint=self.config.rpc_url,
            )
        return self._pot_contract

    @property
    def token_contract(self) -> AsyncContract:
        if self._token_contract is None:
            raise NetworkError(
                "Token contract not available; call connect() first",
                endpoint=self.config.rpc_url,
            )
        return self._token_contract

    @property
    def multicall_contract(self) -> AsyncContract:
        if self._multicall_contract is None:
            raise NetworkError(
                "Multicall contract not available; call connect() first",
                endpoint=self.config.rpc_url,
            )
        return self._multicall_contract

    @property
    def chain_id(self) -> int | None:
        return self._chain_id

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _build_web3_provider(self, rpc_url: str) -> AsyncWeb3:
        provider = AsyncHTTPProvider(
            rpc_url,
            request_kwargs={"timeout": ClientTimeout(total=self.config.request_timeout)},
        )
        return AsyncWeb3(provider)
