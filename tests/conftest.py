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
from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from coreason_authn.config import AuthenticationSettings, OpenIdConnectOptions
from coreason_authn.registry import AuthenticationBuilder, SchemeRegistry

DEFAULT_AUTHORITY = "https://login.idp.example"


@pytest.fixture(autouse=True)
def clean_authn_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Removes COREASON_AUTHN_* variables so settings constructed without arguments start empty.
    Tests that exercise environment loading set their own values.
    """
    for key in list(os.environ):
        if key.upper().startswith("COREASON_AUTHN_"):
            monkeypatch.delenv(key)
    yield


@pytest.fixture
def make_options() -> Callable[..., OpenIdConnectOptions]:
    """Factory for valid OpenID Connect options; keyword arguments override the defaults."""

    def _make(**overrides: Any) -> OpenIdConnectOptions:
        values: dict[str, Any] = {
            "authority": DEFAULT_AUTHORITY,
            "client_id": "Test Id",
            "client_secret": "Test Secret",
            "sign_in_scheme": "Cookies",
        }
        values.update(overrides)
        return OpenIdConnectOptions(**values)

    return _make


@pytest.fixture
def self_targeting_registry(make_options: Callable[..., OpenIdConnectOptions]) -> SchemeRegistry:
    """
    OpenIdConnect (the default scheme) forwards everything to itself, and 'alias' forwards to OpenIdConnect.
    """
    return (
        AuthenticationBuilder(AuthenticationSettings(default_scheme="OpenIdConnect"))
        .add_openid_connect(options=make_options(), forward_default="OpenIdConnect")
        .add_cookie()
        .add_scheme("alias", "alias", forward_default="OpenIdConnect")
        .build()
    )


@pytest.fixture
def mock_handler() -> MagicMock:
    handler = MagicMock()
    handler.authenticate = AsyncMock(return_value={"succeeded": True})
    handler.challenge = AsyncMock(return_value=None)
    handler.forbid = AsyncMock(return_value=None)
    handler.sign_in = AsyncMock(return_value=None)
    handler.sign_out = AsyncMock(return_value=None)
    return handler


@pytest.fixture
def mock_handler_provider(mock_handler: MagicMock) -> MagicMock:
    provider = MagicMock()
    provider.get_handler.return_value = mock_handler
    return provider
