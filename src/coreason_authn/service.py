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
AuthenticationService component: the five operation entry points of the pipeline.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, Status, StatusCode

from coreason_authn.config import AuthenticationSettings
from coreason_authn.exceptions import CoreasonAuthnError
from coreason_authn.models import AuthenticationHandler, HandlerProvider, HandlerRef, Operation
from coreason_authn.registry import SchemeRegistry
from coreason_authn.resolver import SchemeResolver
from coreason_authn.utils.logger import logger
from coreason_authn.validator import OptionsValidator

tracer = trace.get_tracer(__name__)


class AuthenticationService:
    """
    Routes each operation to one handler: resolve the scheme, validate its options, hand off.

    Attributes:
        registry (SchemeRegistry): The registered schemes.
        resolver (SchemeResolver): Resolves operations to schemes.
        validator (OptionsValidator): Validates OpenID Connect options on first use.
        handler_provider (HandlerProvider): Supplies handler instances for resolved schemes.
    """

    def __init__(
        self,
        registry: SchemeRegistry,
        handler_provider: HandlerProvider,
        settings: AuthenticationSettings | None = None,
        validator: OptionsValidator | None = None,
    ) -> None:
        """
        Initialize the AuthenticationService.

        Args:
            registry: The registry built at startup.
            handler_provider: Supplies the handler for a resolved scheme.
            settings: Default schemes. Read from the environment when omitted.
            validator: The options validator. A new `OptionsValidator` when omitted.
        """
        self.registry = registry
        self.handler_provider = handler_provider
        self.resolver = SchemeResolver(registry, settings)
        self.validator = validator or OptionsValidator()

    def resolve(self, operation: Operation | str, scheme: str | None = None, context: Any = None) -> HandlerRef:
        """
        Resolves the handler reference without invoking it. See `SchemeResolver.resolve`.
        """
        return self.resolver.resolve(operation, scheme, context)

    async def authenticate(self, context: Any, scheme: str | None = None) -> Any:
        """
        Authenticates the request with the resolved scheme.

        Args:
            context: The request context.
            scheme: The scheme name, or None for the default authenticate scheme.

        Returns:
            Whatever the handler's authenticate returns (the authentication result).

        Raises:
            SchemeResolutionError: If the operation cannot be routed to a handler.
            OptionsValidationError: If the resolved scheme's options are invalid.
        """
        return await self._dispatch(Operation.AUTHENTICATE, context, scheme)

    async def challenge(self, context: Any, scheme: str | None = None, properties: Any = None) -> None:
        await self._dispatch(Operation.CHALLENGE, context, scheme, properties=properties)

    async def forbid(self, context: Any, scheme: str | None = None, properties: Any = None) -> None:
        await self._dispatch(Operation.FORBID, context, scheme, properties=properties)

    async def sign_in(self, context: Any, principal: Any, scheme: str | None = None, properties: Any = None) -> None:
        """
        Signs in `principal` with the resolved scheme.

        Raises:
            HandlerNotConfiguredError: If the scheme cannot sign in (e.g. a challenge-only scheme).
        """
        await self._dispatch(Operation.SIGN_IN, context, scheme, principal=principal, properties=properties)

    async def sign_out(self, context: Any, scheme: str | None = None, properties: Any = None) -> None:
        await self._dispatch(Operation.SIGN_OUT, context, scheme, properties=properties)

    def _prepare(self, operation: Operation, context: Any, scheme: str | None, span: Span) -> HandlerRef:
        """
        Resolves the scheme and validates the options of every OpenID Connect scheme on the chain.
        """
        ref = self.resolver.resolve(operation, scheme, context)
        span.set_attribute("authn.requested_scheme", ref.requested_scheme)
        span.set_attribute("authn.resolved_scheme", ref.scheme.name)
        span.set_attribute("authn.forward_chain", list(ref.forward_chain))

        for name in ref.forward_chain:
            options = self.registry.options_for(name)
            if options is not None:
                self.validator.validate(options, name)

        if ref.was_forwarded:
            logger.debug(f"{operation.label} forwarded: {' -> '.join(ref.forward_chain)}")
        return ref

    def _handler_for(self, ref: HandlerRef) -> AuthenticationHandler:
        return self.handler_provider.get_handler(ref.scheme, self.registry.options_for(ref.scheme.name))

    async def _dispatch(
        self,
        operation: Operation,
        context: Any,
        scheme: str | None,
        *,
        principal: Any = None,
        properties: Any = None,
    ) -> Any:
        with tracer.start_as_current_span(f"authn.{operation.value}") as span:
            span.set_attribute("authn.operation", operation.value)

            try:
                ref = self._prepare(operation, context, scheme, span)
            except CoreasonAuthnError as e:
                logger.warning(f"Unable to {operation.label}: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            handler = self._handler_for(ref)

            if operation is Operation.AUTHENTICATE:
                result = await handler.authenticate(context)
            elif operation is Operation.CHALLENGE:
                result = await handler.challenge(context, properties)
            elif operation is Operation.FORBID:
                result = await handler.forbid(context, properties)
            elif operation is Operation.SIGN_IN:
                result = await handler.sign_in(context, principal, properties)
            else:
                result = await handler.sign_out(context, properties)

            span.set_status(Status(StatusCode.OK))
            return result
