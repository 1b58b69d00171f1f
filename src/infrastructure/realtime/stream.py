from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from src.infrastructure.realtime.channel import Subscription

logger = logging.getLogger(__name__)


async def stream_subscription(websocket: WebSocket, subscription: Subscription) -> None:
    """Forward a subscription's events to an accepted socket until either side stops.

    Text "ping" is answered with "pong"; any other client message is ignored.
    When the sender or the receiver ends, the other one is cancelled and both
    outcomes are collected before returning.
    """

    async def pump() -> None:
        while True:
            event = await subscription.next_event()
            await websocket.send_json(event.to_message())

    async def listen() -> None:
        while True:
            if await websocket.receive_text() == "ping":
                await websocket.send_text("pong")

    tasks = [asyncio.create_task(pump()), asyncio.create_task(listen())]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for task in done:
        if task.cancelled():
            continue
        exc = task.exception()
        if isinstance(exc, WebSocketDisconnect):
            logger.info(
                "WebSocket client disconnected: user=%s farm=%s",
                subscription.user_id,
                subscription.farm_id,
            )
        elif exc is not None:
            logger.error(
                "WebSocket stream for user %s failed: %s",
                subscription.user_id,
                exc,
                exc_info=exc,
            )
