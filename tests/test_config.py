# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authn

import os
from datetime import timedelta
from unittest.mock import patch

import pytest
from pydantic import SecretStr, ValidationError

from coreason_authn.config import AuthenticationSettings, LoggingSettings, OpenIdConnectOptions, OptionsState
from coreason_authn.models import Operation


def test_settings_loading() -> None:
    """Test loading default schemes from environment variables."""
    with patch.dict(
        os.environ,
        {
            "COREASON_AUTHN_DEFAULT_SCHEME": "Cookies",
            "COREASON_AUTHN_DEFAULT_CHALLENGE_SCHEME": "OpenIdConnect",
        },
    ):
        settings = AuthenticationSettings()
        assert settings.default_scheme == "Cookies"
        assert settings.default_challenge_scheme == "OpenIdConnect"


def test_settings_case_insensitive() -> None:
    """Test that environment variables are case-insensitive (pydantic-settings default behavior)."""
    with patch.dict(os.environ, {"coreason_authn_default_scheme": "Cookies"}):
        assert AuthenticationSettings().default_scheme == "Cookies"


def test_blank_settings_are_unset() -> None:
    with patch.dict(os.environ, {"COREASON_AUTHN_DEFAULT_SCHEME": "  "}):
        settings = AuthenticationSettings()
    assert settings.default_scheme is None
    assert settings.default_for(Operation.AUTHENTICATE) is None


def test_defaults_fall_back_to_default_scheme() -> None:
    settings = AuthenticationSettings(default_scheme="Cookies")
    for operation in Operation:
        assert settings.default_for(operation) == "Cookies"


def test_forbid_falls_back_to_challenge_default() -> None:
    settings = AuthenticationSettings(default_scheme="Cookies", default_challenge_scheme="OpenIdConnect")
    assert settings.default_for(Operation.FORBID) == "OpenIdConnect"

    settings = AuthenticationSettings(default_challenge_scheme="OpenIdConnect", default_forbid_scheme="Deny")
    assert settings.default_for(Operation.FORBID) == "Deny"


def test_sign_out_falls_back_to_sign_in_default() -> None:
    settings = AuthenticationSettings(default_scheme="OpenIdConnect", default_sign_in_scheme="Cookies")
    assert settings.default_for(Operation.SIGN_IN) == "Cookies"
    assert settings.default_for(Operation.SIGN_OUT) == "Cookies"

    settings = AuthenticationSettings(default_sign_in_scheme="Cookies", default_sign_out_scheme="OpenIdConnect")
    assert settings.default_for(Operation.SIGN_OUT) == "OpenIdConnect"


def test_authenticate_default_does_not_leak_into_challenge() -> None:
    settings = AuthenticationSettings(default_authenticate_scheme="Bearer")
    assert settings.default_for(Operation.AUTHENTICATE) == "Bearer"
    assert settings.default_for(Operation.CHALLENGE) is None
    assert settings.default_for(Operation.SIGN_IN) is None


def test_logging_settings_from_env() -> None:
    with patch.dict(os.environ, {"COREASON_LOG_LEVEL": "debug", "COREASON_LOG_JSON": "true"}):
        settings = LoggingSettings()
    assert settings.log_level == "debug"
    assert settings.log_json is True
    assert settings.log_file is None


def test_options_defaults() -> None:
    options = OpenIdConnectOptions()

    assert options.require_https_metadata is True
    assert options.callback_path == "/signin-oidc"
    assert options.signed_out_callback_path == "/signout-callback-oidc"
    assert options.scope == ["openid", "profile"]
    assert options.state is OptionsState.UNVALIDATED
    assert not options.has_configuration_source()


def test_options_client_secret_is_protected() -> None:
    options = OpenIdConnectOptions(client_id="app", client_secret="super-secret")

    assert isinstance(options.client_secret, SecretStr)
    assert options.client_secret.get_secret_value() == "super-secret"
    assert "super-secret" not in repr(options)


def test_options_reject_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        OpenIdConnectOptions(clientid="typo")  # type: ignore[call-arg]


def test_options_reject_invalid_configuration_manager() -> None:
    with pytest.raises(ValidationError):
        OpenIdConnectOptions(configuration_manager=object())


def test_options_parse_max_age() -> None:
    assert OpenIdConnectOptions(max_age=timedelta(minutes=5)).max_age == timedelta(seconds=300)
    assert OpenIdConnectOptions(max_age=-1).max_age == timedelta(seconds=-1)


def test_each_options_instance_has_own_lock() -> None:
    a = OpenIdConnectOptions()
    b = OpenIdConnectOptions()
    assert a.validation_lock is not b.validation_lock


def test_mark_validated_commits_metadata_address() -> None:
    options = OpenIdConnectOptions(authority="https://idp.example")
    with options.validation_lock:
        options.mark_validated("https://idp.example/.well-known/openid-configuration")

    assert options.is_validated
    assert options.metadata_address == "https://idp.example/.well-known/openid-configuration"
