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
Scheme registration: a mutable builder used at startup and the read-only registry it produces.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from coreason_authn.config import AuthenticationSettings, OpenIdConnectOptions
from coreason_authn.exceptions import SchemeRegistrationError
from coreason_authn.models import ALL_OPERATIONS, AuthenticationScheme, Operation
from coreason_authn.utils.logger import logger

COOKIE_SCHEME = "Cookies"
OPENID_CONNECT_SCHEME = "OpenIdConnect"

COOKIE_CAPABILITIES: frozenset[Operation] = ALL_OPERATIONS
# Remote handlers hand the identity to their sign_in_scheme instead of signing in themselves
OPENID_CONNECT_CAPABILITIES: frozenset[Operation] = frozenset(
    {Operation.AUTHENTICATE, Operation.CHALLENGE, Operation.FORBID, Operation.SIGN_OUT}
)


class SchemeRegistry(Mapping[str, AuthenticationScheme]):
    """
    Read-only mapping of scheme name to `AuthenticationScheme`, plus per-scheme OpenID Connect options.

    Produced once by `AuthenticationBuilder.build()` and shared by concurrent requests without locking.
    """

    def __init__(
        self,
        schemes: Mapping[str, AuthenticationScheme],
        options: Mapping[str, OpenIdConnectOptions] | None = None,
    ) -> None:
        self._schemes = MappingProxyType(dict(schemes))
        self._options = MappingProxyType(dict(options or {}))

    def __getitem__(self, name: str) -> AuthenticationScheme:
        return self._schemes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemes)

    def __len__(self) -> int:
        return len(self._schemes)

    def options_for(self, name: str) -> OpenIdConnectOptions | None:
        """Returns the OpenID Connect options registered for `name`, if any."""
        return self._options.get(name)

    def schemes_supporting(self, operation: Operation) -> list[str]:
        return [name for name, scheme in self._schemes.items() if scheme.supports(operation)]


class AuthenticationBuilder:
    """
    Collects scheme registrations during startup.

    Example:
        registry = (
            AuthenticationBuilder(AuthenticationSettings(default_scheme="Cookies"))
            .add_cookie()
            .add_openid_connect(options=OpenIdConnectOptions(authority="https://idp.example", client_id="app"))
            .build()
        )
    """

    def __init__(self, settings: AuthenticationSettings | None = None) -> None:
        """
        Initialize the AuthenticationBuilder.

        Args:
            settings: Default schemes. Read from the environment (COREASON_AUTHN_*) when omitted.
        """
        self.settings = settings or AuthenticationSettings()
        self._schemes: dict[str, AuthenticationScheme] = {}
        self._options: dict[str, OpenIdConnectOptions] = {}

    def add_scheme(
        self,
        name: str,
        handler_type: str,
        capabilities: Iterable[Operation | str] = ALL_OPERATIONS,
        *,
        display_name: str | None = None,
        **forwarding: Any,
    ) -> "AuthenticationBuilder":
        """
        Registers a scheme.

        Args:
            name: Unique scheme name.
            handler_type: Kind of handler backing the scheme.
            capabilities: Operations the handler supports. Defaults to all five.
            display_name: Optional friendly name.
            **forwarding: forward_default, forward_<operation> or forward_default_selector.

        Raises:
            SchemeRegistrationError: If a scheme with the same name already exists.
        """
        if name in self._schemes:
            raise SchemeRegistrationError(f"Scheme already exists: {name}")

        self._schemes[name] = AuthenticationScheme(
            name=name,
            handler_type=handler_type,
            display_name=display_name,
            capabilities=frozenset(Operation(c) for c in capabilities),
            **forwarding,
        )
        logger.debug(f"Registered authentication scheme '{name}' ({handler_type})")
        return self

    def add_cookie(
        self, name: str = COOKIE_SCHEME, *, display_name: str | None = None, **forwarding: Any
    ) -> "AuthenticationBuilder":
        return self.add_scheme(name, "cookie", COOKIE_CAPABILITIES, display_name=display_name, **forwarding)

    def add_openid_connect(
        self,
        name: str = OPENID_CONNECT_SCHEME,
        options: OpenIdConnectOptions | None = None,
        configure: Callable[[OpenIdConnectOptions], None] | None = None,
        *,
        display_name: str | None = None,
        **forwarding: Any,
    ) -> "AuthenticationBuilder":
        """
        Registers an OpenID Connect scheme. Its options are not validated here, only on first use.

        Args:
            name: Unique scheme name.
            options: The scheme options. A fresh `OpenIdConnectOptions` when omitted.
            configure: Optional callback that mutates the options in place.
            display_name: Optional friendly name.
            **forwarding: forward_default, forward_<operation> or forward_default_selector.
        """
        options = options or OpenIdConnectOptions()
        if configure is not None:
            configure(options)

        self.add_scheme(
            name, "openid_connect", OPENID_CONNECT_CAPABILITIES, display_name=display_name, **forwarding
        )
        self._options[name] = options
        return self

    def build(self) -> SchemeRegistry:
        """
        Freezes the registrations into a `SchemeRegistry`.

        OpenID Connect schemes without a sign_in_scheme receive the sign-in default from settings.
        """
        sign_in_default = self.settings.default_for(Operation.SIGN_IN)
        for name, options in self._options.items():
            if not options.sign_in_scheme and sign_in_default:
                options.sign_in_scheme = sign_in_default
                logger.debug(f"Scheme '{name}' uses default sign_in_scheme '{sign_in_default}'")

        return SchemeRegistry(self._schemes, self._options)
