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
SchemeResolver component for routing an operation to exactly one scheme.
"""

from typing import Any

from coreason_authn.config import AuthenticationSettings
from coreason_authn.exceptions import (
    HandlerNotConfiguredError,
    NoDefaultSchemeError,
    RecursiveForwardError,
    UnknownSchemeError,
)
from coreason_authn.models import AuthenticationScheme, HandlerRef, Operation, ResolutionRequest
from coreason_authn.registry import SchemeRegistry
from coreason_authn.utils.logger import logger


class SchemeResolver:
    """
    Resolves (operation, scheme name) to the scheme whose handler must run, following forwarding.

    Forwarding is followed in a loop over an explicit visited chain, so a cycle is reported
    at its first repeated name after at most len(registry) lookups.

    Attributes:
        registry (SchemeRegistry): The registered schemes.
        settings (AuthenticationSettings): Default schemes per operation.
    """

    def __init__(self, registry: SchemeRegistry, settings: AuthenticationSettings | None = None) -> None:
        self.registry = registry
        self.settings = settings or AuthenticationSettings()

    def resolve_request(self, request: ResolutionRequest, context: Any = None) -> HandlerRef:
        return self.resolve(request.operation, request.scheme, context)

    def resolve(self, operation: Operation | str, scheme: str | None = None, context: Any = None) -> HandlerRef:
        """
        Resolves the handler for an operation.

        Args:
            operation: The operation to perform.
            scheme: The requested scheme name. None (or empty) uses the default for the operation.
            context: Opaque request context, passed to forward_default_selector callables.

        Returns:
            HandlerRef: The resolved scheme and the forwarding chain that led to it.

        Raises:
            NoDefaultSchemeError: If no scheme was given and no default is configured.
            UnknownSchemeError: If a scheme on the chain is not registered.
            HandlerNotConfiguredError: If a scheme on the chain does not support the operation.
            RecursiveForwardError: If forwarding returns to a scheme already on the chain.
        """
        operation = Operation(operation)
        requested = scheme or self.settings.default_for(operation)
        if not requested:
            raise NoDefaultSchemeError(
                f"No scheme was specified for {operation.label}, and there was no default "
                f"{operation.label} scheme found. Set default_scheme or "
                f"default_{operation.value}_scheme in AuthenticationSettings.",
                operation=operation.value,
            )

        chain: list[str] = []
        visited: set[str] = set()
        current = requested
        while True:
            chain.append(current)
            visited.add(current)
            resolved = self._lookup(operation, current)
            self._ensure_supported(operation, resolved)

            target = resolved.forward_target(operation, context)
            if not target:
                return HandlerRef(
                    scheme=resolved,
                    operation=operation,
                    requested_scheme=requested,
                    forward_chain=tuple(chain),
                )

            if target in visited:
                chain.append(target)
                raise RecursiveForwardError(
                    f"Attempting to {operation.label} with scheme '{requested}' resulted in a recursive call "
                    f"back to itself (forwarding chain: {' -> '.join(chain)}). Check the forward_* settings "
                    f"of the schemes involved.",
                    operation=operation.value,
                    scheme=current,
                    chain=chain,
                )

            logger.debug(f"Scheme '{current}' forwards {operation.label} to '{target}'")
            current = target

    def _lookup(self, operation: Operation, name: str) -> AuthenticationScheme:
        scheme = self.registry.get(name)
        if scheme is None:
            registered = ", ".join(self.registry) or "<none>"
            raise UnknownSchemeError(
                f"No authentication handler is registered for the scheme '{name}'. "
                f"The registered schemes are: {registered}.",
                operation=operation.value,
                scheme=name,
            )
        return scheme

    def _ensure_supported(self, operation: Operation, scheme: AuthenticationScheme) -> None:
        if scheme.supports(operation):
            return

        if operation.is_sign_operation:
            supporting = ", ".join(self.registry.schemes_supporting(operation)) or "<none>"
            message = (
                f"No {operation.label.replace(' ', '-')} handler is configured to handle {operation.label} "
                f"for the scheme: {scheme.name}. The registered {operation.label} schemes are: {supporting}."
            )
        else:
            message = (
                f"No authentication handler is configured to handle {operation.label} for the scheme: {scheme.name}."
            )
        raise HandlerNotConfiguredError(message, operation=operation.value, scheme=scheme.name)
