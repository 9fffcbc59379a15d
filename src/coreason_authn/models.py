# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_authn

"""
Data models for the coreason-authn package.
"""

from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from coreason_authn.config import OpenIdConnectOptions


class Operation(StrEnum):
    """The five request-level authentication operations."""

    AUTHENTICATE = "authenticate"
    CHALLENGE = "challenge"
    FORBID = "forbid"
    SIGN_IN = "sign_in"
    SIGN_OUT = "sign_out"

    @property
    def label(self) -> str:
        """Human readable form used in error messages (e.g. 'sign in')."""
        return self.value.replace("_", " ")

    @property
    def is_sign_operation(self) -> bool:
        return self in (Operation.SIGN_IN, Operation.SIGN_OUT)


ALL_OPERATIONS: frozenset[Operation] = frozenset(Operation)


class AuthenticationScheme(BaseModel):
    """
    A registered authentication scheme: its name, what its handler can do and where it forwards.

    The effective forward target for an operation is the per-operation field if set,
    else the result of `forward_default_selector` (if it returns a name), else `forward_default`.

    Attributes:
        name (str): Unique, case-sensitive scheme name.
        handler_type (str): Kind of handler registered for the scheme (e.g. "cookie").
        display_name (str | None): Optional friendly name.
        capabilities (frozenset[Operation]): Operations the handler supports.
        forward_default (str | None): Scheme that receives every operation without a specific override.
        forward_default_selector (Callable | None): Per-request choice of forward target.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Unique scheme name.", examples=["Cookies"])
    handler_type: str = Field(..., description="Kind of handler backing the scheme.", examples=["cookie"])
    display_name: str | None = None
    capabilities: frozenset[Operation] = Field(default=ALL_OPERATIONS)

    forward_default: str | None = None
    forward_authenticate: str | None = None
    forward_challenge: str | None = None
    forward_forbid: str | None = None
    forward_sign_in: str | None = None
    forward_sign_out: str | None = None
    forward_default_selector: Callable[[Any], str | None] | None = Field(default=None, repr=False)

    @field_validator(
        "forward_default",
        "forward_authenticate",
        "forward_challenge",
        "forward_forbid",
        "forward_sign_in",
        "forward_sign_out",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treats empty forward targets as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def supports(self, operation: Operation) -> bool:
        return operation in self.capabilities

    def forward_override(self, operation: Operation) -> str | None:
        overrides = {
            Operation.AUTHENTICATE: self.forward_authenticate,
            Operation.CHALLENGE: self.forward_challenge,
            Operation.FORBID: self.forward_forbid,
            Operation.SIGN_IN: self.forward_sign_in,
            Operation.SIGN_OUT: self.forward_sign_out,
        }
        return overrides[operation]

    def forward_target(self, operation: Operation, context: Any = None) -> str | None:
        """
        Returns the scheme name the operation is forwarded to, or None if this scheme handles it.

        Args:
            operation: The operation being resolved.
            context: The opaque request context, passed to `forward_default_selector`.
        """
        target = self.forward_override(operation)
        if target:
            return target

        if self.forward_default_selector is not None:
            selected = self.forward_default_selector(context)
            if selected:
                return selected

        return self.forward_default


class ResolutionRequest(BaseModel):
    """An operation plus the requested scheme name (None means the configured default)."""

    model_config = ConfigDict(frozen=True)

    operation: Operation
    scheme: str | None = None


class HandlerRef(BaseModel):
    """
    The outcome of a successful resolution.

    Attributes:
        scheme (AuthenticationScheme): The scheme whose handler runs the operation.
        operation (Operation): The operation being performed.
        requested_scheme (str): The scheme name resolution started from (after defaulting).
        forward_chain (tuple[str, ...]): Every scheme visited, ending with the resolved one.
    """

    model_config = ConfigDict(frozen=True)

    scheme: AuthenticationScheme
    operation: Operation
    requested_scheme: str
    forward_chain: tuple[str, ...]

    @property
    def was_forwarded(self) -> bool:
        return len(self.forward_chain) > 1


class OpenIdConfiguration(BaseModel):
    """
    A static OpenID Provider configuration document (.well-known/openid-configuration).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    issuer: str = Field(..., description="The OIDC issuer URL.")
    authorization_endpoint: str | None = Field(default=None, description="The authorization endpoint URL.")
    token_endpoint: str | None = Field(default=None, description="The token endpoint URL.")
    jwks_uri: str | None = Field(default=None, description="The URL to the JWKS.")
    userinfo_endpoint: str | None = Field(default=None, description="The userinfo endpoint URL.")
    end_session_endpoint: str | None = Field(default=None, description="The RP-initiated logout endpoint URL.")


@runtime_checkable
class ConfigurationManager(Protocol):
    """Supplies (and refreshes) the identity provider configuration. Retrieval is not done here."""

    def get_configuration(self) -> OpenIdConfiguration: ...


class AuthenticationHandler(Protocol):
    """Protocol for the handler that performs an operation once a scheme is resolved."""

    async def authenticate(self, context: Any) -> Any: ...

    async def challenge(self, context: Any, properties: Any = None) -> None: ...

    async def forbid(self, context: Any, properties: Any = None) -> None: ...

    async def sign_in(self, context: Any, principal: Any, properties: Any = None) -> None: ...

    async def sign_out(self, context: Any, properties: Any = None) -> None: ...


class HandlerProvider(Protocol):
    """Protocol for looking up the handler instance of a resolved scheme."""

    def get_handler(
        self, scheme: AuthenticationScheme, options: "OpenIdConnectOptions | None"
    ) -> AuthenticationHandler:
        """
        Returns the handler for `scheme`.

        Args:
            scheme: The resolved scheme.
            options: The validated OpenID Connect options when the scheme has them, else None.
        """
        ...
