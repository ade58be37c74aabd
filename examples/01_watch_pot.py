"""Example: Follow the pot, countdown and resolved action for a wallet."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from time_tomb import EventType, LocalAccountWallet, StoreEvent, TimeTombClient, TimeTombConfig

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger("watch_pot")


def on_event(event: StoreEvent) -> None:
    if event.type is EventType.SNAPSHOT_UPDATED:
        snapshot = event.payload
        logger.info(
            "Pot %s USDC, leader %s, %ss remaining",
            snapshot.total_deposited,
            snapshot.current_leader,
            snapshot.remaining_time_ms // 1000,
        )
    elif event.type is EventType.ACTION_CHANGED:
        logger.info("Action: %s", event.payload.label)
    elif event.type is EventType.READ_FAILED:
        logger.warning("Error loading contract data: %s", event.payload.message)


async def main() -> None:
    """Print state changes until interrupted."""
    config = TimeTombConfig.from_env()
    client = TimeTombClient(config)
    client.subscribe(
        on_event,
        [EventType.SNAPSHOT_UPDATED, EventType.ACTION_CHANGED, EventType.READ_FAILED],
    )

    async with client:
        private_key = os.getenv("PRIVATE_KEY")
        if private_key:
            client.set_wallet(LocalAccountWallet(private_key, client.connections))

        while True:
            state = client.view_state()
            labels = state.countdown.as_labels()
            logger.info(
                "%s:%s:%s:%s left (%s) on %s - %s",
                labels["days"],
                labels["hours"],
                labels["minutes"],
                labels["seconds"],
                "OPEN" if state.countdown.is_open else "CLOSED",
                state.network_name,
                state.leader_label,
            )
            await asyncio.sleep(5)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
