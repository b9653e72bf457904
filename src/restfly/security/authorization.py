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
"""Authorization contract used by the signing channel."""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from restfly.client.http import Pair


@dataclass(frozen=True)
class AuthorizationToken:
    """Credential computed for one request, e.g. ``OAuth oauth_signature="..."``."""

    scheme: str
    value: str

    @property
    def header_value(self) -> str:
        return f"{self.scheme} {self.value}"


@runtime_checkable
class Authorization(Protocol):
    """Computes the ``Authorization`` header of a request.

    ``parameters`` holds every signable parameter of the request: the
    query string of *url* followed by the parameters carried in the body.
    Both methods may be ``async``.
    """

    def authorize(
        self, method: str, url: str, charset: str, parameters: Sequence[Pair]
    ) -> AuthorizationToken | Awaitable[AuthorizationToken]: ...

    def refresh(self) -> None | Awaitable[None]: ...
