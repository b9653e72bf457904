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
"""httpx-based HTTP channel adapter."""

from __future__ import annotations

from typing import Any

import httpx

from restfly.client.entity import EntityWriter
from restfly.client.http import HttpResponse
from restfly.kernel.exceptions import TransportError


class HttpxChannel:
    """HttpChannel that sends through a shared ``httpx.AsyncClient``.

    The response is opened in streaming mode; whoever ends up owning the
    ``HttpResponse`` closes it.
    """

    def __init__(self, client: httpx.AsyncClient, method: str, url: str, encoding: str) -> None:
        self._client = client
        self._method = method
        self._url = url
        self._encoding = encoding
        self._headers: list[tuple[str, str]] = []
        self._socket_timeout: float | None = None
        self._connection_timeout: float | None = None
        self._writer: EntityWriter | None = None

    def set_header(self, name: str, value: str) -> None:
        lowered = name.lower()
        self._headers = [(k, v) for k, v in self._headers if k.lower() != lowered]
        self._headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        self._headers.append((name, value))

    def set_content_type(self, content_type: str) -> None:
        self.set_header("Content-Type", content_type)

    def set_accept(self, value: str) -> None:
        self.set_header("Accept", value)

    def set_socket_timeout(self, timeout: float | None) -> None:
        self._socket_timeout = timeout

    def set_connection_timeout(self, timeout: float | None) -> None:
        self._connection_timeout = timeout

    def write_entity_with(self, writer: EntityWriter) -> None:
        self._writer = writer

    def _timeout(self) -> Any:
        if self._socket_timeout is None and self._connection_timeout is None:
            return httpx.USE_CLIENT_DEFAULT
        return httpx.Timeout(None, connect=self._connection_timeout, read=self._socket_timeout)

    async def send(self) -> HttpResponse:
        content = self._writer.to_bytes() if self._writer is not None else None
        request = self._client.build_request(
            self._method,
            self._url,
            headers=self._headers,
            content=content,
            timeout=self._timeout(),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{self._method} {self._url} failed: {exc}",
                code="TRANSPORT",
                context={"method": self._method, "url": self._url},
            ) from exc
        return HttpResponse(response, default_charset=self._encoding)


class HttpxChannelFactory:
    """Channel factory backed by one ``httpx.AsyncClient``.

    Without an explicit client, one is created with no timeout, so a
    request only times out when its method configures one.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=None, headers=headers or {}, transport=transport
        )

    def open(self, method: str, url: str, encoding: str) -> HttpxChannel:
        return HttpxChannel(self._client, method, url, encoding)

    async def close(self) -> None:
        """Close the underlying client if this factory created it."""
        if self._owns_client:
            await self._client.aclose()
