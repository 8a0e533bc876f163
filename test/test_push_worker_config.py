"""Tests for push worker configuration and CLI start-up"""

from pathlib import Path
from unittest.mock import patch

import pytest

from push_worker import main as worker_main
from push_worker.config import ConfigError, PushWorkerConfig

BASE_ENV = {
  "APPWRITE_ENDPOINT": "https://sgp.cloud.appwrite.io/v1",
  "APPWRITE_PROJECT_ID": "proj",
  "APPWRITE_API_KEY": "env-secret",
  "FIREBASE_SERVICE_ACCOUNT_JSON": "/etc/tenzin/firebase.json",
}


@pytest.fixture(autouse=True)
def no_keyring():
  with patch("backend.config.keyring.get_password", return_value=None) as mock_get:
    yield mock_get


def test_defaults():
  config = PushWorkerConfig.from_env(BASE_ENV)

  assert config.database_id == "default"
  assert config.collection_id == "push_tokens"
  assert config.firebase_service_account_json == Path("/etc/tenzin/firebase.json")
  assert config.payload.title == "Tenzin"
  assert config.payload.body == "Hello from Tenzin!"
  assert config.payload.data == {}
  assert config.fetch_limit == 500
  assert config.batch_size == 500


def test_overrides():
  env = {
    **BASE_ENV,
    "APPWRITE_DATABASE_ID": "main",
    "APPWRITE_COLLECTION_ID": "devices",
    "PUSH_TITLE": "Тензин",
    "PUSH_BODY": "Шинэ хичээл",
    "PUSH_DATA": '{"screen": "lesson", "lessonId": 7}',
    "PUSH_FETCH_LIMIT": "1000",
    "PUSH_BATCH_SIZE": "250",
  }
  config = PushWorkerConfig.from_env(env)

  assert (config.database_id, config.collection_id) == ("main", "devices")
  assert config.payload.title == "Тензин"
  assert config.payload.data == {"screen": "lesson", "lessonId": "7"}
  assert (config.fetch_limit, config.batch_size) == (1000, 250)


def test_api_key_prefers_keyring(no_keyring):
  no_keyring.return_value = "keyring-secret"
  config = PushWorkerConfig.from_env(BASE_ENV)
  assert config.appwrite_api_key == "keyring-secret"


def test_api_key_hidden_from_repr():
  assert "env-secret" not in repr(PushWorkerConfig.from_env(BASE_ENV))


@pytest.mark.parametrize(
  "missing", ["APPWRITE_ENDPOINT", "APPWRITE_PROJECT_ID", "APPWRITE_API_KEY"]
)
def test_missing_appwrite_configuration(missing):
  env = {k: v for k, v in BASE_ENV.items() if k != missing}
  with pytest.raises(ConfigError, match="Missing Appwrite configuration"):
    PushWorkerConfig.from_env(env)


def test_missing_service_account():
  env = {k: v for k, v in BASE_ENV.items() if k != "FIREBASE_SERVICE_ACCOUNT_JSON"}
  with pytest.raises(ConfigError, match="FIREBASE_SERVICE_ACCOUNT_JSON"):
    PushWorkerConfig.from_env(env)


@pytest.mark.parametrize("push_data", ["{not json", "[1, 2]"])
def test_malformed_push_data(push_data):
  with pytest.raises(ConfigError, match="PUSH_DATA"):
    PushWorkerConfig.from_env({**BASE_ENV, "PUSH_DATA": push_data})


def test_batch_size_capped_at_provider_limit():
  with pytest.raises(ConfigError):
    PushWorkerConfig.from_env({**BASE_ENV, "PUSH_BATCH_SIZE": "501"})


def test_cli_exits_with_error_on_missing_configuration(monkeypatch):
  for key in BASE_ENV:
    monkeypatch.delenv(key, raising=False)
  assert worker_main.main([]) == 1


@pytest.mark.parametrize("limit", ["0", "-1", "many"])
def test_cli_rejects_invalid_limit(limit):
  with (
    patch("push_worker.main.PushWorker") as mock_worker,
    pytest.raises(SystemExit) as exc_info,
  ):
    worker_main.main(["--limit", limit])
  assert exc_info.value.code == 2
  mock_worker.assert_not_called()


def test_cli_runs_worker(monkeypatch):
  for key, value in BASE_ENV.items():
    monkeypatch.setenv(key, value)

  with (
    patch("push_worker.main.init_firebase") as mock_init,
    patch("push_worker.main.create_databases") as mock_databases,
    patch("push_worker.main.PushWorker") as mock_worker,
  ):
    mock_worker.return_value.run.return_value.documents = 0
    assert worker_main.main(["--limit", "10", "--dry-run"]) == 0

  mock_init.assert_called_once_with(Path("/etc/tenzin/firebase.json"))
  assert mock_worker.call_args.kwargs["dry_run"] is True
  mock_worker.return_value.run.assert_called_once_with(limit=10)
  mock_databases.assert_called_once()
