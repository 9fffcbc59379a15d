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
OptionsValidator component for lazily validating OpenID Connect scheme options.
"""

from datetime import timedelta
from urllib.parse import urlparse

from coreason_authn.config import OpenIdConnectOptions
from coreason_authn.exceptions import (
    InsecureMetadataSourceError,
    InvalidRangeError,
    MissingConfigurationSourceError,
    MissingRequiredArgumentError,
    OptionsValidationError,
    SelfReferentialSignInSchemeError,
)
from coreason_authn.utils.logger import logger

WELL_KNOWN_PATH = "/.well-known/openid-configuration"


def derive_metadata_address(authority: str) -> str:
    """
    Builds the discovery document URL for an authority.

    Only a single trailing slash on the authority is absorbed; nothing else is normalized.

    Args:
        authority: The identity provider base URL (e.g. https://idp.example).

    Returns:
        str: e.g. https://idp.example/.well-known/openid-configuration
    """
    if authority.endswith("/"):
        authority = authority[:-1]
    return authority + WELL_KNOWN_PATH


def is_https(url: str) -> bool:
    return urlparse(url).scheme.lower() == "https"


class OptionsValidator:
    """
    Validates `OpenIdConnectOptions` on first use of a scheme.

    A successful pass marks the options VALIDATED and later calls return immediately.
    A failing pass leaves the options untouched, so every retry fails the same way.
    """

    def validate(self, options: OpenIdConnectOptions, scheme_name: str) -> OpenIdConnectOptions:
        """
        Validates the options for `scheme_name`, deriving defaults exactly once.

        Args:
            options: The scheme's options.
            scheme_name: The name the scheme is registered under.

        Returns:
            OpenIdConnectOptions: The same (now validated) options instance.

        Raises:
            SelfReferentialSignInSchemeError: If sign_in_scheme names the scheme itself.
            MissingRequiredArgumentError: If client_id or callback_path is missing.
            MissingConfigurationSourceError: If no authority, metadata_address, configuration or manager is set.
            InsecureMetadataSourceError: If HTTPS is required and authority/metadata_address is not HTTPS.
            InvalidRangeError: If max_age is negative.
        """
        # Check 1: No lock
        if options.is_validated:
            return options

        with options.validation_lock:
            # Check 2: another request may have finished validation while we waited
            if options.is_validated:
                return options

            try:
                metadata_address = self._check(options, scheme_name)
            except OptionsValidationError as e:
                logger.warning(f"OpenID Connect options for scheme '{scheme_name}' are invalid: {e}")
                raise

            options.mark_validated(metadata_address)

        logger.info(f"OpenID Connect options for scheme '{scheme_name}' validated.")
        return options

    def _check(self, options: OpenIdConnectOptions, scheme_name: str) -> str | None:
        """
        Runs every check in order and returns the metadata address to commit.
        Does not mutate `options`.
        """
        if options.sign_in_scheme == scheme_name:
            raise SelfReferentialSignInSchemeError(
                f"The sign_in_scheme for OpenIdConnectOptions cannot be set to itself ('{scheme_name}'). "
                "If it was set from default_sign_in_scheme or default_scheme, set sign_in_scheme "
                "explicitly to the scheme that persists the identity."
            )

        if not options.client_id:
            raise MissingRequiredArgumentError("The 'client_id' option must be provided.", param_name="client_id")

        if not options.callback_path or not options.callback_path.startswith("/"):
            raise MissingRequiredArgumentError(
                "The 'callback_path' option must be provided and start with '/'.", param_name="callback_path"
            )

        if not options.has_configuration_source():
            raise MissingConfigurationSourceError(
                "Provide authority, metadata_address, configuration, or configuration_manager to OpenIdConnectOptions"
            )

        metadata_address = options.metadata_address
        if not metadata_address and options.authority:
            metadata_address = derive_metadata_address(options.authority)
            logger.debug(f"Derived metadata_address for scheme '{scheme_name}': {metadata_address}")

        if options.require_https_metadata is not False:
            insecure = [url for url in (options.authority, metadata_address) if url and not is_https(url)]
            if insecure:
                raise InsecureMetadataSourceError(
                    "The metadata_address or authority must use HTTPS unless disabled for development "
                    "by setting require_https_metadata=False."
                )

        if options.max_age is not None and options.max_age < timedelta(0):
            raise InvalidRangeError("The value must not be a negative duration.", param_name="max_age")

        return metadata_address
