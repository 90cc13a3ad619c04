from __future__ import annotations

from pathlib import Path

import pytest

from certflow.core.errors import ConfigError
from certflow.core.profiles import expand_env, load_profile
from certflow.services.certificates.models import FailurePolicy
from certflow.services.certificates.settings import load_certificate_profile
from certflow.services.google.config import GoogleConfig, resolve_config

PROFILES = """
google:
  default:
    client_id: ${TEST_CLIENT_ID}
    client_secret: secret
    refresh_token: refresh
    retries:
      max_attempts: 5
certificates:
  workshop:
    google_profile: default
    template_id: tmpl
    destination_folder_id: ${TEST_FOLDER_ID}
    placeholder: "{{name}}"
    spreadsheet_id: sheet
    sheet_name: Participants
    columns:
      name: Name
      email: Email
      artifact: Certificate ID
    failure_policy: continue
    message:
      subject: "Your certificate, $name"
      html_body: "<p>Hi $name, see ${link}</p>"
  broken:
    template_id: tmpl
    destination_folder_id: folder
    placeholder: "{{name}}"
    spreadsheet_id: sheet
    sheet_name: Participants
    columns: {name: Name, email: Email, artifact: Certificate}
    unexpected: true
"""

GOOGLE_ENV = (
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "GOOGLE_REFRESH_TOKEN",
    "GOOGLE_ACCESS_TOKEN",
    "GOOGLE_SENDER_ADDRESS",
    "GOOGLE_TIMEOUT_SEC",
    "GOOGLE_RETRY_ATTEMPTS",
    "GOOGLE_RETRY_BACKOFF_MS",
    "GOOGLE_RETRY_MAX_BACKOFF_MS",
)


@pytest.fixture()
def profiles_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in GOOGLE_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("TEST_CLIENT_ID", "cid")
    monkeypatch.setenv("TEST_FOLDER_ID", "folder-9")
    path = tmp_path / "profiles.yaml"
    path.write_text(PROFILES, encoding="utf-8")
    return path


def test_load_certificate_profile(profiles_path: Path) -> None:
    profile = load_certificate_profile("workshop", profiles_path)

    assert profile.failure_policy is FailurePolicy.CONTINUE
    assert profile.message.subject == "Your certificate, $name"
    assert profile.process_configuration().destination_folder_id == "folder-9"
    binding = profile.roster_binding()
    assert binding.artifact_header == "Certificate ID"
    binding.require_complete()


def test_missing_environment_variable(profiles_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TEST_FOLDER_ID")

    with pytest.raises(ConfigError, match="TEST_FOLDER_ID"):
        load_certificate_profile("workshop", profiles_path)


def test_unknown_keys_and_profiles(profiles_path: Path) -> None:
    with pytest.raises(ConfigError, match="broken"):
        load_certificate_profile("broken", profiles_path)
    with pytest.raises(ConfigError, match="not found"):
        load_profile("certificates", "absent", profiles_path)
    with pytest.raises(ConfigError, match="not found"):
        load_profile("certificates", "workshop", profiles_path.with_name("missing.yaml"))


def test_expand_env_walks_nested_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_VALUE", "x")

    assert expand_env({"a": ["${TEST_VALUE}", 3], "b": {"c": "${TEST_VALUE}-y"}}) == {"a": ["x", 3], "b": {"c": "x-y"}}
    assert expand_env("$TEST_VALUE stays") == "$TEST_VALUE stays"


def test_expand_env_reports_any_unset_reference(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_VALUE", "x")
    monkeypatch.delenv("TEST_UNSET", raising=False)

    with pytest.raises(ConfigError, match="TEST_UNSET"):
        expand_env("${TEST_VALUE}/${TEST_UNSET}")


def test_google_profile_with_env_override(profiles_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOOGLE_SENDER_ADDRESS", "events@example.org")

    config = resolve_config("default", config_path=profiles_path)

    assert config.client_id == "cid"
    assert config.retries.max_attempts == 5
    assert config.sender_address == "events@example.org"
    assert config.can_refresh


def test_resolve_config_without_credentials(profiles_path: Path) -> None:
    with pytest.raises(ConfigError, match="credentials"):
        resolve_config()
    assert GoogleConfig(access_token="tok").validate().access_token == "tok"


def test_message_templates_are_not_expanded(profiles_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("name", "root")
    monkeypatch.delenv("link", raising=False)

    profile = load_certificate_profile("workshop", profiles_path)

    assert profile.message.subject == "Your certificate, $name"
    assert profile.message.html_body == "<p>Hi $name, see ${link}</p>"
