"""Configuration container for the Time Tomb client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv
from web3.types import ChecksumAddress

from .constants import DEFAULT_RPC_URLS, MULTICALL3_ADDRESS, TOKEN_DECIMALS, Chain, get_chain
from .exceptions import ValidationError
from .utils import checksum

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_REFRESH_INTERVAL = 10.0
DEFAULT_TICK_INTERVAL = 1.0
DEFAULT_CELEBRATION_DELAY = 3.0
DEFAULT_RECEIPT_TIMEOUT = 120.0
DEFAULT_ROUND_WINDOW = 24 * 60 * 60.0

ENV_PREFIX = "TIME_TOMB_"


@dataclass(frozen=True)
class TimeTombConfig:
    """Everything the client needs, constructed once at startup."""

    pot_address: ChecksumAddress
    token_address: ChecksumAddress
    chain_id: int = Chain.BASE_SEPOLIA.value
    rpc_url: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    tick_interval: float = DEFAULT_TICK_INTERVAL
    celebration_delay: float = DEFAULT_CELEBRATION_DELAY
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    round_window: float = DEFAULT_ROUND_WINDOW
    token_decimals: int = TOKEN_DECIMALS
    multicall_address: ChecksumAddress = checksum(MULTICALL3_ADDRESS)

    def __post_init__(self) -> None:
        for name in ("request_timeout", "refresh_interval", "tick_interval", "round_window"):
            value = getattr(self, name)
            if value <= 0:
                raise ValidationError(f"{name} must be positive", field=name, value=value)
        if self.celebration_delay < 0:
            raise ValidationError(
                "celebration_delay cannot be negative",
                field="celebration_delay",
                value=self.celebration_delay,
            )
        if self.receipt_timeout <= 0:
            raise ValidationError(
                "receipt_timeout must be positive",
                field="receipt_timeout",
                value=self.receipt_timeout,
            )

    @classmethod
    def create(
        cls,
        pot_address: str,
        token_address: str,
        **kwargs,
    ) -> TimeTombConfig:
        """Build a config from raw address strings."""

        return cls(
            pot_address=checksum(pot_address, field="pot_address"),
            token_address=checksum(token_address, field="token_address"),
            **kwargs,
        )

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> TimeTombConfig:
        """Build a config from ``TIME_TOMB_*`` environment variables."""

        if dotenv:
            load_dotenv(override=False)

        pot_address = os.getenv(f"{ENV_PREFIX}POT_ADDRESS")
        token_address = os.getenv(f"{ENV_PREFIX}TOKEN_ADDRESS")
        if not pot_address or not token_address:
            raise ValidationError(
                f"{ENV_PREFIX}POT_ADDRESS and {ENV_PREFIX}TOKEN_ADDRESS must be set",
                field="pot_address" if not pot_address else "token_address",
            )

        kwargs: dict = {}
        chain_id = _env_int("CHAIN_ID")
        if chain_id is not None:
            kwargs["chain_id"] = chain_id
        rpc_url = os.getenv(f"{ENV_PREFIX}RPC_URL")
        if rpc_url:
            kwargs["rpc_url"] = rpc_url
        for name in (
            "request_timeout",
            "refresh_interval",
            "tick_interval",
            "celebration_delay",
            "receipt_timeout",
            "round_window",
        ):
            value = _env_float(name.upper())
            if value is not None:
                kwargs[name] = value

        return cls.create(pot_address, token_address, **kwargs)

    def with_defaulted_urls(self) -> TimeTombConfig:
        """Return a copy with the RPC URL defaulted from the chain id."""

        if self.rpc_url:
            return replace(self, rpc_url=self.rpc_url.rstrip("/"))

        try:
            chain = get_chain(self.chain_id)
        except ValueError as exc:
            raise ValidationError(
                "No default RPC URL for chain; set rpc_url explicitly",
                field="chain_id",
                value=self.chain_id,
            ) from exc

        return replace(self, rpc_url=DEFAULT_RPC_URLS[chain])


def _env_float(suffix: str) -> float | None:
    raw = os.getenv(f"{ENV_PREFIX}{suffix}")
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(
            f"{ENV_PREFIX}{suffix} must be numeric", field=suffix.lower(), value=raw
        ) from exc


def _env_int(suffix: str) -> int | None:
    raw = os.getenv(f"{ENV_PREFIX}{suffix}")
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw, 0)
    except ValueError as exc:
        raise ValidationError(
            f"{ENV_PREFIX}{suffix} must be an integer", field=suffix.lower(), value=raw
        ) from exc
