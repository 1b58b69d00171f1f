from __future__ import annotations

import logging
from typing import Iterable, Protocol

from src.application.errors import ConfigurationError
from src.config.settings import Settings
from src.infrastructure.push.fcm import FCMClient
from src.infrastructure.push.fcm_v1 import FCMv1Client

logger = logging.getLogger(__name__)


class PushSender(Protocol):
    async def send_to_tokens(
        self,
        *,
        tokens: Iterable[str],
        title: str,
        body: str,
        data: dict | None = None,
    ) -> list[str]: ...


_warned = False


def build_push_sender(settings: Settings) -> PushSender | None:
    """Pick the configured FCM client; None means persistence-only delivery.

    Prefers HTTP v1 when a project id and service account are available.
    Broken credentials are reported once and degrade to no push.
    """
    global _warned
    try:
        sa_json = settings.get_fcm_service_account_json()
        if settings.fcm_project_id and sa_json:
            return FCMv1Client(project_id=settings.fcm_project_id, service_account_json=sa_json)
        if settings.fcm_server_key:
            return FCMClient(settings.fcm_server_key.get_secret_value())
        if settings.fcm_project_id or settings.fcm_service_account_file:
            raise ConfigurationError("FCM project configured without usable service account")
    except ConfigurationError as exc:
        if not _warned:
            logger.error("Push delivery disabled: %s", exc.message)
            _warned = True
    return None
