from __future__ import annotations

import logging
from typing import Iterable

import httpx

logger = logging.getLogger(__name__)

# Legacy API error codes that mean the registration token is dead
INVALID_TOKEN_ERRORS = {"NotRegistered", "InvalidRegistration", "MismatchSenderId"}


class FCMClient:
    """Minimal FCM legacy HTTP sender (server key)."""

    def __init__(self, server_key: str, *, timeout: float = 10) -> None:
        self.server_key = server_key
        self.timeout = timeout
        self.endpoint = "https://fcm.googleapis.com/fcm/send"

    async def send_to_tokens(
        self,
        *,
        tokens: Iterable[str],
        title: str,
        body: str,
        data: dict | None = None,
    ) -> list[str]:
        """Send to every token; returns the tokens FCM reported as invalid."""
        tokens = list(tokens)
        if not tokens:
            return []
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "registration_ids": tokens,
            "notification": {"title": title, "body": body},
            "data": data or {},
            "priority": "high",
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(self.endpoint, headers=headers, json=payload)
        if resp.status_code >= 400:
            logger.error("FCM error %s: %s", resp.status_code, resp.text)
            resp.raise_for_status()
        logger.debug("FCM sent: %s", resp.text)
        results = resp.json().get("results") or []
        return [
            token
            for token, result in zip(tokens, results)
            if result.get("error") in INVALID_TOKEN_ERRORS
        ]
