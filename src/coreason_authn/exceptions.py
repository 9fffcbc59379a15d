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
Custom exceptions for the coreason-authn package.
"""

from collections.abc import Sequence


class CoreasonAuthnError(Exception):
    """Base exception for all coreason-authn errors."""


class SchemeRegistrationError(CoreasonAuthnError):
    """Raised when a scheme cannot be registered (e.g. the name is already taken)."""


class SchemeResolutionError(CoreasonAuthnError):
    """
    Raised when an operation cannot be routed to a handler.

    Attributes:
        operation (str | None): The operation that was attempted.
        scheme (str | None): The scheme name that resolution was working on.
    """

    def __init__(self, message: str, *, operation: str | None = None, scheme: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.scheme = scheme


class NoDefaultSchemeError(SchemeResolutionError):
    """Raised when no scheme was requested and no default is configured for the operation."""


class UnknownSchemeError(SchemeResolutionError):
    """Raised when the requested (or forwarded-to) scheme is not registered."""


class RecursiveForwardError(SchemeResolutionError):
    """
    Raised when forwarding leads back to a scheme already on the resolution chain.

    Attributes:
        chain (tuple[str, ...]): The forwarding chain, ending with the repeated scheme name.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        scheme: str | None = None,
        chain: Sequence[str] = (),
    ) -> None:
        super().__init__(message, operation=operation, scheme=scheme)
        self.chain = tuple(chain)


class HandlerNotConfiguredError(SchemeResolutionError):
    """Raised when the resolved scheme's handler does not support the requested operation."""


class OptionsValidationError(CoreasonAuthnError):
    """Base exception for invalid OpenID Connect options, raised on first use of a scheme."""


class SelfReferentialSignInSchemeError(OptionsValidationError):
    """Raised when an OpenID Connect scheme names itself as its sign-in scheme."""


class MissingRequiredArgumentError(OptionsValidationError, ValueError):
    """
    Raised when a required option is missing.

    Attributes:
        param_name (str): The name of the missing option.
    """

    def __init__(self, message: str, param_name: str) -> None:
        super().__init__(message)
        self.param_name = param_name


class MissingConfigurationSourceError(OptionsValidationError):
    """Raised when none of authority, metadata_address, configuration or configuration_manager is set."""


class InsecureMetadataSourceError(OptionsValidationError):
    """Raised when the authority or metadata address is not HTTPS while HTTPS is required."""


class InvalidRangeError(OptionsValidationError, ValueError):
    """
    Raised when an option value is out of its allowed range.

    Attributes:
        param_name (str): The name of the offending option.
    """

    def __init__(self, message: str, param_name: str) -> None:
        super().__init__(message)
        self.param_name = param_name
