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
Authentication scheme resolution and lazy OpenID Connect options validation for pluggable auth pipelines.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .config import AuthenticationSettings, OpenIdConnectOptions
from .exceptions import CoreasonAuthnError, OptionsValidationError, SchemeResolutionError
from .models import AuthenticationScheme, HandlerRef, OpenIdConfiguration, Operation, ResolutionRequest
from .registry import AuthenticationBuilder, SchemeRegistry
from .resolver import SchemeResolver
from .service import AuthenticationService
from .validator import OptionsValidator

__all__ = [
    "AuthenticationBuilder",
    "AuthenticationScheme",
    "AuthenticationService",
    "AuthenticationSettings",
    "CoreasonAuthnError",
    "HandlerRef",
    "OpenIdConfiguration",
    "OpenIdConnectOptions",
    "Operation",
    "OptionsValidationError",
    "OptionsValidator",
    "ResolutionRequest",
    "SchemeRegistry",
    "SchemeResolutionError",
    "SchemeResolver",
]
