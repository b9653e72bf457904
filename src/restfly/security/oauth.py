# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""OAuth (1.0a style) authorization with a shared, refreshable access token."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from restfly.client.http import Pair
from restfly.client.utils import resolve
from restfly.security.authorization import AuthorizationToken

logger = logging.getLogger(__name__)

SESSION_HANDLE = "oauth_session_handle"


@dataclass(frozen=True)
class OAuthToken:
    """An access token, its secret and provider-specific extras."""

    token: str
    secret: str
    attributes: Mapping[str, str] = field(default_factory=dict)

    def attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def __repr__(self) -> str:
        return f"OAuthToken(token={self.token[:4]}..., attributes={sorted(self.attributes)})"


@runtime_checkable
class OAuthenticator(Protocol):
    """Signing collaborator: computes OAuth parameters and refreshes tokens."""

    def oauth(
        self, token: OAuthToken, method: str, url: str, parameters: Sequence[Pair]
    ) -> Sequence[Pair] | Awaitable[Sequence[Pair]]:
        """Return the ``oauth_*`` parameters (signature included) for one request."""
        ...

    def refresh_access_token(
        self, token: OAuthToken, session_handle: str | None
    ) -> OAuthToken | Awaitable[OAuthToken]: ...


def format_oauth_params(params: Sequence[Pair]) -> str:
    """``[("a", "1"), ("b", "2")]`` -> ``a="1",b="2"``."""
    return ",".join(f'{name}="{value}"' for name, value in params)


class OAuthorization:
    """Authorization that signs with a shared ``OAuthToken``.

    Each ``authorize`` call reads the token reference once and signs with
    that snapshot. ``refresh`` replaces the whole token in one assignment;
    concurrent refreshes are serialized and calls in flight keep the token
    they already read.
    """

    def __init__(self, authenticator: OAuthenticator, access_token: OAuthToken) -> None:
        if authenticator is None:
            raise ValueError("OAuthenticator is required")
        if access_token is None:
            raise ValueError("Token is required")
        self._authenticator = authenticator
        self._token = access_token
        self._refresh_lock = asyncio.Lock()

    @property
    def token(self) -> OAuthToken:
        return self._token

    async def authorize(
        self, method: str, url: str, charset: str, parameters: Sequence[Pair]
    ) -> AuthorizationToken:
        token = self._token
        oauth_params = await resolve(self._authenticator.oauth(token, method, url, parameters))
        return AuthorizationToken("OAuth", format_oauth_params(oauth_params))

    async def refresh(self) -> None:
        async with self._refresh_lock:
            current = self._token
            refreshed = await resolve(
                self._authenticator.refresh_access_token(current, current.attribute(SESSION_HANDLE))
            )
            self._token = refreshed
        logger.info("OAuth access token refreshed")
