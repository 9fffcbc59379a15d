# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authn

from typing import Any
from unittest.mock import Mock

import pytest
from pydantic import ValidationError

from coreason_authn.models import (
    ALL_OPERATIONS,
    AuthenticationScheme,
    ConfigurationManager,
    HandlerRef,
    OpenIdConfiguration,
    Operation,
    ResolutionRequest,
)


def test_operation_labels() -> None:
    assert Operation.AUTHENTICATE.label == "authenticate"
    assert Operation.SIGN_IN.label == "sign in"
    assert Operation.SIGN_OUT.label == "sign out"
    assert Operation.SIGN_IN.is_sign_operation
    assert not Operation.FORBID.is_sign_operation
    assert len(ALL_OPERATIONS) == 5


def test_scheme_is_frozen() -> None:
    scheme = AuthenticationScheme(name="Cookies", handler_type="cookie")
    with pytest.raises(ValidationError):
        scheme.forward_default = "Other"  # type: ignore[misc]


def test_scheme_requires_name() -> None:
    with pytest.raises(ValidationError):
        AuthenticationScheme(name="", handler_type="cookie")


def test_scheme_defaults_to_all_capabilities() -> None:
    scheme = AuthenticationScheme(name="Cookies", handler_type="cookie")
    assert all(scheme.supports(operation) for operation in Operation)


def test_forward_target_precedence() -> None:
    selector = Mock(return_value="Selected")
    scheme = AuthenticationScheme(
        name="Smart",
        handler_type="policy",
        forward_default="Default",
        forward_sign_out="SignOutTarget",
        forward_default_selector=selector,
    )

    # Per-operation override wins without consulting the selector
    assert scheme.forward_target(Operation.SIGN_OUT, "ctx") == "SignOutTarget"
    selector.assert_not_called()

    # Selector wins over forward_default
    assert scheme.forward_target(Operation.AUTHENTICATE, "ctx") == "Selected"
    selector.assert_called_once_with("ctx")

    # Empty selector result falls back to forward_default
    selector.return_value = ""
    assert scheme.forward_target(Operation.CHALLENGE, "ctx") == "Default"


def test_forward_target_none_without_forwarding() -> None:
    scheme = AuthenticationScheme(name="Cookies", handler_type="cookie")
    for operation in Operation:
        assert scheme.forward_target(operation) is None


def test_blank_forward_targets_are_unset() -> None:
    scheme = AuthenticationScheme(name="Cookies", handler_type="cookie", forward_default="", forward_challenge=" ")
    assert scheme.forward_default is None
    assert scheme.forward_target(Operation.CHALLENGE) is None


def test_every_operation_has_a_forward_override() -> None:
    values: dict[str, Any] = {f"forward_{operation.value}": f"to_{operation.value}" for operation in Operation}
    scheme = AuthenticationScheme(name="x", handler_type="custom", **values)
    for operation in Operation:
        assert scheme.forward_override(operation) == f"to_{operation.value}"


def test_resolution_request_coerces_operation() -> None:
    request = ResolutionRequest(operation="forbid")  # type: ignore[arg-type]
    assert request.operation is Operation.FORBID
    assert request.scheme is None


def test_handler_ref_was_forwarded() -> None:
    scheme = AuthenticationScheme(name="Cookies", handler_type="cookie")
    ref = HandlerRef(
        scheme=scheme, operation=Operation.AUTHENTICATE, requested_scheme="alias", forward_chain=("alias", "Cookies")
    )
    assert ref.was_forwarded


def test_openid_configuration_ignores_unknown_keys() -> None:
    config = OpenIdConfiguration(
        issuer="https://idp.example/",
        jwks_uri="https://idp.example/jwks",
        claims_supported=["sub"],  # type: ignore[call-arg]
    )
    assert config.issuer == "https://idp.example/"
    assert not hasattr(config, "claims_supported")


def test_configuration_manager_protocol_is_runtime_checkable() -> None:
    class Manager:
        def get_configuration(self) -> OpenIdConfiguration:
            return OpenIdConfiguration(issuer="https://idp.example/")

    assert isinstance(Manager(), ConfigurationManager)
    assert not isinstance(object(), ConfigurationManager)
