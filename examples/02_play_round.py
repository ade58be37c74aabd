"""Example: Take whichever action the pot currently offers (approve, deposit or withdraw)."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from time_tomb import (
    EventType,
    LocalAccountWallet,
    StoreEvent,
    TimeTombClient,
    TimeTombConfig,
    TransactionState,
)

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("play_round")


def on_notice(event: StoreEvent) -> None:
    notice = event.payload
    logger.info("[%s] %s %s", notice.level.value, notice.title, notice.description or "")


async def main() -> None:
    """Run the resolved action until nothing actionable is left."""
    private_key = os.getenv("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not found in environment variables")

    config = TimeTombConfig.from_env()
    client = TimeTombClient(config)
    client.subscribe(on_notice, [EventType.NOTICE])

    async with client:
        client.set_wallet(LocalAccountWallet(private_key, client.connections))
        await client.refresh()

        for _ in range(3):
            action = client.current_action()
            logger.info("Resolved action: %s", action.label)
            if not action.enabled or action.handler is None:
                break

            record = await action.handler()
            if record is None or record.outcome is None:
                break

            logger.info("Waiting for %s (%s)", record.kind.value, record.tx_hash)
            outcome = await record.outcome
            if outcome is not TransactionState.CONFIRMED:
                logger.error("%s failed: %s", record.kind.value, record.error)
                break

            await client.refresh()

        state = client.view_state()
        logger.info(
            "Pot: %s USDC, leader: %s, celebrating: %s",
            state.snapshot.total_deposited,
            state.leader_label,
            state.celebrating,
        )


if __name__ == "__main__":
    asyncio.run(main())
