import asyncio
import contextlib
import os
import sys
from typing import Any

# Add src to path for running directly
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from coreason_authn import (
    AuthenticationBuilder,
    AuthenticationScheme,
    AuthenticationService,
    AuthenticationSettings,
    CoreasonAuthnError,
    OpenIdConnectOptions,
)


class PrintingHandler:
    """Stand-in handler that only reports what it was asked to do."""

    def __init__(self, scheme: AuthenticationScheme) -> None:
        self.scheme = scheme

    async def authenticate(self, context: Any) -> Any:
        print(f"    {self.scheme.name}: authenticate")
        return {"scheme": self.scheme.name}

    async def challenge(self, context: Any, properties: Any = None) -> None:
        print(f"    {self.scheme.name}: challenge")

    async def forbid(self, context: Any, properties: Any = None) -> None:
        print(f"    {self.scheme.name}: forbid")

    async def sign_in(self, context: Any, principal: Any, properties: Any = None) -> None:
        print(f"    {self.scheme.name}: sign in {principal}")

    async def sign_out(self, context: Any, properties: Any = None) -> None:
        print(f"    {self.scheme.name}: sign out")


class PrintingHandlerProvider:
    def get_handler(self, scheme: AuthenticationScheme, options: OpenIdConnectOptions | None) -> PrintingHandler:
        return PrintingHandler(scheme)


async def main() -> None:
    """
    Demonstrates scheme resolution and lazy options validation:
    - Cookies as default scheme, OpenID Connect for challenges
    - An alias forwarding to Cookies
    - A misconfigured loop reported instead of recursing
    """
    settings = AuthenticationSettings(default_scheme="Cookies", default_challenge_scheme="OpenIdConnect")
    registry = (
        AuthenticationBuilder(settings)
        .add_cookie()
        .add_openid_connect(options=OpenIdConnectOptions(authority="https://idp.example", client_id="demo"))
        .add_scheme("alias", "alias", forward_default="Cookies")
        .add_scheme("loop", "alias", forward_default="loop")
        .build()
    )
    service = AuthenticationService(registry, PrintingHandlerProvider(), settings)
    oidc_options = registry.options_for("OpenIdConnect")

    print(">>> Concurrent first challenges (options validated once)")
    await asyncio.gather(*(service.challenge({"request": i}) for i in range(3)))
    print(f">>> Derived metadata address: {oidc_options.metadata_address if oidc_options else None}")

    print(">>> Sign in through the alias")
    await service.sign_in({}, "alice", "alias")

    print(">>> Authenticate with a self-forwarding scheme")
    try:
        await service.authenticate({}, "loop")
    except CoreasonAuthnError as e:
        print(f">>> Expected failure: {e}")


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
