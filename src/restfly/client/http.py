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
"""Transport-boundary value objects: request builder, request, response.

``HttpRequestBuilder`` is immutable: every mutator returns a new builder, so
interceptors and injectors form a pipeline of ``(builder, ctx) -> builder``
steps instead of sharing one mutable object.
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

import httpx

from restfly.kernel.exceptions import RequestBuildError

if TYPE_CHECKING:
    from restfly.client.entity import EntityWriter
    from restfly.client.serializers import Serializer

_PLACEHOLDER_RE = re.compile(r"\{([^{}/]+)\}")


class Pair(NamedTuple):
    """A name/value parameter, as found in a query string or form body."""

    name: str
    value: str


def parse_query(url: str) -> list[Pair]:
    """Return the decoded query parameters of *url*, in order."""
    query = urlsplit(url).query
    return [Pair(k, v) for k, v in parse_qsl(query, keep_blank_values=True)]


def short_content_type(content_type: str | None) -> str | None:
    """``"text/plain; charset=utf-8"`` -> ``"text/plain"``."""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


class MultipartField(NamedTuple):
    name: str
    data: bytes
    content_type: str
    filename: str | None = None


class BodyValue(NamedTuple):
    value: Any
    serializer: Serializer


@dataclass(frozen=True)
class HttpRequest:
    """A finalized, transport-ready request."""

    method: str
    url: str
    encoding: str = "utf-8"
    headers: tuple[Pair, ...] = ()
    socket_timeout: float | None = None
    connection_timeout: float | None = None
    entity: EntityWriter | None = None

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def query_params(self) -> list[Pair]:
        return parse_query(self.url)

    @property
    def content_type(self) -> str | None:
        return self.header("Content-Type") or (self.entity.content_type if self.entity else None)


@dataclass(frozen=True)
class HttpRequestBuilder:
    """Immutable draft of a request, threaded through interceptors and injectors."""

    method: str
    url: str
    encoding: str = "utf-8"
    socket_timeout: float | None = None
    connection_timeout: float | None = None
    headers: tuple[Pair, ...] = ()
    path_params: tuple[Pair, ...] = ()
    query_params: tuple[Pair, ...] = ()
    cookies: tuple[Pair, ...] = ()
    matrix_params: tuple[Pair, ...] = ()
    form_params: tuple[Pair, ...] = ()
    multipart: tuple[MultipartField, ...] = ()
    body: BodyValue | None = None
    content_type: str | None = None

    def _with(self, **changes: Any) -> HttpRequestBuilder:
        return dataclasses.replace(self, **changes)

    def using(self, method: str) -> HttpRequestBuilder:
        return self._with(method=method.upper())

    def with_url(self, url: str) -> HttpRequestBuilder:
        return self._with(url=url)

    def with_timeouts(
        self, socket_timeout: float | None, connection_timeout: float | None
    ) -> HttpRequestBuilder:
        return self._with(socket_timeout=socket_timeout, connection_timeout=connection_timeout)

    def add_header(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(headers=(*self.headers, Pair(name, value)))

    def set_header(self, name: str, value: str) -> HttpRequestBuilder:
        lowered = name.lower()
        kept = tuple(h for h in self.headers if h.name.lower() != lowered)
        return self._with(headers=(*kept, Pair(name, value)))

    def with_accept(self, media_type: str) -> HttpRequestBuilder:
        return self.set_header("Accept", media_type)

    def with_content_type(self, content_type: str) -> HttpRequestBuilder:
        return self._with(content_type=content_type)

    def add_path_param(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(path_params=(*self.path_params, Pair(name, value)))

    def add_query_param(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(query_params=(*self.query_params, Pair(name, value)))

    def add_cookie(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(cookies=(*self.cookies, Pair(name, value)))

    def add_matrix_param(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(matrix_params=(*self.matrix_params, Pair(name, value)))

    def add_form_param(self, name: str, value: str) -> HttpRequestBuilder:
        return self._with(form_params=(*self.form_params, Pair(name, value)))

    def add_multipart(self, field: MultipartField) -> HttpRequestBuilder:
        return self._with(multipart=(*self.multipart, field))

    def with_body(self, value: Any, serializer: Serializer) -> HttpRequestBuilder:
        return self._with(body=BodyValue(value, serializer))

    def build(self) -> HttpRequest:
        """Finalize into an ``HttpRequest``.

        Raises:
            RequestBuildError: a ``{placeholder}`` has no value, or a body
                value is combined with form or multipart parameters.
        """
        from restfly.client.entity import (
            FormEntityWriter,
            MultipartEntityWriter,
            SerializingEntityWriter,
        )

        entity: EntityWriter | None = None
        if self.body is not None:
            if self.form_params or self.multipart:
                raise RequestBuildError(
                    "A request body cannot be combined with form or multipart parameters",
                    code="BODY_CONFLICT",
                )
            entity = SerializingEntityWriter(self.body.value, self.body.serializer, self.encoding)
        elif self.multipart:
            entity = MultipartEntityWriter(self.multipart, self.form_params, self.encoding)
        elif self.form_params:
            entity = FormEntityWriter(self.form_params, self.encoding)
        if entity is not None and self.content_type:
            entity = entity.with_content_type(self.content_type)

        headers = self.headers
        if self.cookies:
            cookie = "; ".join(f"{name}={value}" for name, value in self.cookies)
            headers = (*headers, Pair("Cookie", cookie))

        return HttpRequest(
            method=self.method,
            url=self._final_url(),
            encoding=self.encoding,
            headers=headers,
            socket_timeout=self.socket_timeout,
            connection_timeout=self.connection_timeout,
            entity=entity,
        )

    def _final_url(self) -> str:
        values = {name: value for name, value in self.path_params}
        base, sep, existing_query = self.url.partition("?")

        def substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in values:
                raise RequestBuildError(
                    f"No value for URL placeholder '{{{key}}}' in '{self.url}'",
                    code="UNRESOLVED_PLACEHOLDER",
                    context={"placeholder": key},
                )
            return quote(values[key], safe="")

        path = _PLACEHOLDER_RE.sub(substitute, base)
        existing_query = _PLACEHOLDER_RE.sub(substitute, existing_query)
        for name, value in self.matrix_params:
            path += f";{quote(name, safe='')}={quote(value, safe='')}"

        query_parts = [existing_query] if existing_query else []
        if self.query_params:
            query_parts.append(urlencode(list(self.query_params), encoding=self.encoding))
        if query_parts:
            return f"{path}?{'&'.join(query_parts)}"
        return path


class HttpResponse:
    """A response whose body has not been read yet.

    Wraps an ``httpx.Response`` opened in streaming mode. ``close`` is
    idempotent; the underlying stream is released at most once.
    """

    def __init__(self, raw: httpx.Response, default_charset: str = "utf-8") -> None:
        self._raw = raw
        self._default_charset = default_charset
        self._closed = False

    @property
    def raw(self) -> httpx.Response:
        return self._raw

    @property
    def status_code(self) -> int:
        return self._raw.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._raw.headers

    @property
    def content_type(self) -> str | None:
        return short_content_type(self._raw.headers.get("content-type"))

    @property
    def charset(self) -> str:
        if self._raw.charset_encoding:
            return self._raw.charset_encoding
        return self._default_charset

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def closed(self) -> bool:
        return self._closed

    async def read(self) -> bytes:
        return await self._raw.aread()

    async def text(self) -> str:
        return (await self.read()).decode(self.charset, errors="replace")

    def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Stream the body. The caller owns the response from here on."""
        return self._raw.aiter_bytes()

    def aiter_text(self) -> AsyncIterator[str]:
        return self._raw.aiter_text()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._raw.aclose()

    def __repr__(self) -> str:
        return f"<HttpResponse [{self.status_code}]>"
