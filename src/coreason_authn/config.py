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
Configuration for the coreason-authn package.
"""

import threading
from datetime import timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_authn.models import ConfigurationManager, OpenIdConfiguration, Operation


class AuthenticationSettings(BaseSettings):
    """
    Process-wide default schemes, used when an operation is requested without a scheme name.

    Attributes:
        default_scheme (str | None): Fallback for every operation.
        default_authenticate_scheme (str | None): Default for authenticate.
        default_challenge_scheme (str | None): Default for challenge.
        default_forbid_scheme (str | None): Default for forbid. Falls back to the challenge default.
        default_sign_in_scheme (str | None): Default for sign in.
        default_sign_out_scheme (str | None): Default for sign out. Falls back to the sign in default.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_AUTHN_",
        case_sensitive=False,
    )

    default_scheme: str | None = None
    default_authenticate_scheme: str | None = None
    default_challenge_scheme: str | None = None
    default_forbid_scheme: str | None = None
    default_sign_in_scheme: str | None = None
    default_sign_out_scheme: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """
        Treats empty or whitespace-only names (e.g. an exported but empty env var) as unset.
        """
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def default_for(self, operation: Operation) -> str | None:
        """
        Returns the default scheme name for an operation, applying the fallback chain.

        Args:
            operation: The operation being resolved.

        Returns:
            The scheme name, or None when nothing is configured.
        """
        if operation is Operation.AUTHENTICATE:
            return self.default_authenticate_scheme or self.default_scheme
        if operation is Operation.CHALLENGE:
            return self.default_challenge_scheme or self.default_scheme
        if operation is Operation.FORBID:
            return self.default_forbid_scheme or self.default_for(Operation.CHALLENGE)
        if operation is Operation.SIGN_IN:
            return self.default_sign_in_scheme or self.default_scheme
        return self.default_sign_out_scheme or self.default_for(Operation.SIGN_IN)


class LoggingSettings(BaseSettings):
    """
    Logging configuration, read from COREASON_LOG_* environment variables.
    """

    model_config = SettingsConfigDict(env_prefix="COREASON_", case_sensitive=False)

    log_level: str = "INFO"
    log_json: bool = False
    log_file: str | None = None


class OptionsState(StrEnum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"


class OpenIdConnectOptions(BaseModel):
    """
    Settings for one OpenID Connect scheme.

    Instances are validated lazily, the first time a request uses the scheme
    (see `coreason_authn.validator.OptionsValidator`). Validation may fill in
    `metadata_address` from `authority`; that is the only mutation it makes.

    Attributes:
        authority (str | None): The identity provider base URL.
        metadata_address (str | None): URL of the discovery document. Derived from authority when empty.
        client_id (str | None): The OIDC Client ID. Required.
        client_secret (SecretStr | None): The OIDC Client secret.
        sign_in_scheme (str | None): Scheme that persists the identity after a successful login.
        require_https_metadata (bool): Enforce HTTPS for authority and metadata_address.
        max_age (timedelta | None): Maximum authentication age requested from the provider.
        configuration (OpenIdConfiguration | None): Static provider configuration.
        configuration_manager (ConfigurationManager | None): Supplier of the provider configuration.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    authority: str | None = None
    metadata_address: str | None = None
    client_id: str | None = None
    client_secret: SecretStr | None = None
    sign_in_scheme: str | None = None
    require_https_metadata: bool = True
    max_age: timedelta | None = None
    configuration: OpenIdConfiguration | None = None
    configuration_manager: ConfigurationManager | None = Field(default=None, repr=False)

    callback_path: str = "/signin-oidc"
    signed_out_callback_path: str = "/signout-callback-oidc"
    response_type: str = "id_token"
    scope: list[str] = Field(default_factory=lambda: ["openid", "profile"])
    save_tokens: bool = False

    _state: OptionsState = PrivateAttr(default=OptionsState.UNVALIDATED)
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @property
    def state(self) -> OptionsState:
        return self._state

    @property
    def is_validated(self) -> bool:
        return self._state is OptionsState.VALIDATED

    @property
    def validation_lock(self) -> threading.Lock:
        return self._lock

    def has_configuration_source(self) -> bool:
        return bool(
            self.authority
            or self.metadata_address
            or self.configuration is not None
            or self.configuration_manager is not None
        )

    def mark_validated(self, metadata_address: str | None) -> None:
        """
        Commits the outcome of a successful validation pass.
        Must be called while holding `validation_lock`.
        """
        self.metadata_address = metadata_address
        self._state = OptionsState.VALIDATED
