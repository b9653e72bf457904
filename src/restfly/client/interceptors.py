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
"""Request interceptors — hooks around parameter injection that may veto a call."""

from __future__ import annotations

from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING

from restfly.client.utils import resolve

if TYPE_CHECKING:
    from restfly.client.context import RequestContext
    from restfly.client.http import HttpRequestBuilder


class RequestInterceptor:
    """Base interceptor; both hooks pass the builder through unchanged.

    Override either hook and return a (possibly new) builder to continue,
    or ``None`` to cancel the call. Hooks may be ``async``. Interceptors
    run again on every retry attempt, so they must not depend on how many
    times they were called.
    """

    def before_injection(
        self, builder: HttpRequestBuilder, context: RequestContext
    ) -> HttpRequestBuilder | None | Awaitable[HttpRequestBuilder | None]:
        return builder

    def after_injection(
        self, builder: HttpRequestBuilder, context: RequestContext
    ) -> HttpRequestBuilder | None | Awaitable[HttpRequestBuilder | None]:
        return builder


class CompositeRequestInterceptor(RequestInterceptor):
    """Runs several interceptors in order; the first veto wins."""

    def __init__(self, *interceptors: RequestInterceptor) -> None:
        self._interceptors = interceptors

    async def before_injection(
        self, builder: HttpRequestBuilder, context: RequestContext
    ) -> HttpRequestBuilder | None:
        current: HttpRequestBuilder | None = builder
        for interceptor in self._interceptors:
            current = await resolve(interceptor.before_injection(current, context))
            if current is None:
                return None
        return current

    async def after_injection(
        self, builder: HttpRequestBuilder, context: RequestContext
    ) -> HttpRequestBuilder | None:
        current: HttpRequestBuilder | None = builder
        for interceptor in self._interceptors:
            current = await resolve(interceptor.after_injection(current, context))
            if current is None:
                return None
        return current


class HeadersInterceptor(RequestInterceptor):
    """Sets static headers on every request before parameters are injected."""

    def __init__(self, headers: Mapping[str, str]) -> None:
        self._headers = dict(headers)

    def before_injection(
        self, builder: HttpRequestBuilder, context: RequestContext
    ) -> HttpRequestBuilder:
        for name, value in self._headers.items():
            builder = builder.set_header(name, value)
        return builder
