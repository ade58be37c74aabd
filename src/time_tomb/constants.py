"""Constants and chain mappings for the Time Tomb client."""

from decimal import Decimal
from enum import Enum

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Canonical Multicall3 deployment, identical on every supported chain
# https://github.com/mds1/multicall
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

TOKEN_DECIMALS = 6
TOKEN_SYMBOL = "USDC"

# One deposit is exactly one whole token.
DEPOSIT_UNIT = Decimal(1)

# Allowance granted by a single approval, in whole tokens.
APPROVAL_CEILING = Decimal(1_000_000_000)


class Chain(int, Enum):
    """Chains the pot contract is deployed on."""

    BASE = 8453
    BASE_SEPOLIA = 84532


CHAIN_NAMES = {
    Chain.BASE: "Base",
    Chain.BASE_SEPOLIA: "Base Sepolia",
}

DEFAULT_RPC_URLS = {
    Chain.BASE: "https://mainnet.base.org",
    Chain.BASE_SEPOLIA: "https://sepolia.base.org",
}


def get_chain(chain_id: int) -> Chain:
    """Get a supported chain from its id.

    Args:
        chain_id: EIP-155 chain id

    Returns:
        Chain member

    Raises:
        ValueError: If the chain is not supported
    """
    try:
        return Chain(int(chain_id))
    except ValueError:
        raise ValueError(f"Unsupported chain id: {chain_id}") from None


def get_chain_name(chain_id: int) -> str:
    """Human readable chain name, falling back to the raw id."""
    try:
        return CHAIN_NAMES[get_chain(chain_id)]
    except ValueError:
        return str(chain_id)
