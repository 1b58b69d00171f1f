from __future__ import annotations

import json

import pytest

from src.application.errors import ConfigurationError
from src.config.settings import Settings
from src.infrastructure.push.factory import build_push_sender
from src.infrastructure.push.fcm import FCMClient
from src.infrastructure.push.fcm_v1 import FCMv1Client


def _settings(**values) -> Settings:
    return Settings.model_validate({"database_url": "sqlite+aiosqlite://", **values})


def test_no_credentials_means_no_push():
    assert build_push_sender(_settings()) is None


def test_legacy_server_key_selects_legacy_client():
    sender = build_push_sender(_settings(fcm_server_key="server-key"))
    assert isinstance(sender, FCMClient)


def test_service_account_selects_v1_client():
    sa = json.dumps({"client_email": "svc@example.iam", "private_key": "-----KEY-----"})
    sender = build_push_sender(
        _settings(fcm_project_id="farm-app", fcm_service_account_json=sa)
    )
    assert isinstance(sender, FCMv1Client)
    assert sender.project_id == "farm-app"


def test_project_without_service_account_degrades_to_none():
    assert build_push_sender(_settings(fcm_project_id="farm-app")) is None


@pytest.mark.parametrize("raw", ["not json", json.dumps({"client_email": "svc@example.iam"})])
def test_v1_client_rejects_bad_service_account(raw):
    with pytest.raises(ConfigurationError):
        FCMv1Client(project_id="farm-app", service_account_json=raw)


def test_inline_service_account_file_value():
    sa = '{"client_email": "a", "private_key": "b"}'
    assert _settings(fcm_service_account_file=sa).get_fcm_service_account_json() == sa


def test_postgres_urls_use_asyncpg():
    assert _settings(database_url="postgres://u:p@db/farm").database_url.startswith(
        "postgresql+asyncpg://"
    )
