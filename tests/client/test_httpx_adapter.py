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
"""Tests for the httpx channel adapter and RequestExecutor."""

from __future__ import annotations

import httpx
import pytest

from restfly.client.adapters.httpx_adapter import HttpxChannel, HttpxChannelFactory
from restfly.client.entity import FormEntityWriter
from restfly.client.http import HttpRequest, Pair
from restfly.client.ports.outbound import HttpChannel, HttpChannelFactory
from restfly.client.transport import RequestExecutor
from restfly.kernel.exceptions import TransportError


class Captured:
    def __init__(self, status: int = 200) -> None:
        self.status = status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text="ok")


def factory_for(handler) -> HttpxChannelFactory:
    return HttpxChannelFactory(transport=httpx.MockTransport(handler))


class TestHttpxChannel:
    def test_satisfies_ports(self):
        factory = factory_for(Captured())
        assert isinstance(factory, HttpChannelFactory)
        assert isinstance(factory.open("GET", "http://h", "utf-8"), HttpChannel)

    @pytest.mark.asyncio
    async def test_headers_and_entity(self):
        captured = Captured()
        channel = factory_for(captured).open("POST", "http://h/form", "utf-8")
        channel.add_header("X-Multi", "1")
        channel.add_header("X-Multi", "2")
        channel.set_accept("text/plain")
        channel.set_content_type("application/x-www-form-urlencoded")
        channel.write_entity_with(FormEntityWriter([Pair("a", "1")]))

        response = await channel.send()

        sent = captured.requests[0]
        assert sent.headers.get_list("x-multi") == ["1", "2"]
        assert sent.headers["accept"] == "text/plain"
        assert sent.headers["content-type"] == "application/x-www-form-urlencoded"
        assert sent.content == b"a=1"
        assert await response.text() == "ok"
        await response.close()

    @pytest.mark.asyncio
    async def test_per_request_timeouts(self):
        captured = Captured()
        channel = factory_for(captured).open("GET", "http://h", "utf-8")
        channel.set_socket_timeout(2.0)
        channel.set_connection_timeout(0.5)
        await channel.send()
        assert captured.requests[0].extensions["timeout"] == {
            "connect": 0.5,
            "read": 2.0,
            "write": None,
            "pool": None,
        }

    @pytest.mark.asyncio
    async def test_no_timeout_by_default(self):
        captured = Captured()
        await factory_for(captured).open("GET", "http://h", "utf-8").send()
        assert captured.requests[0].extensions["timeout"]["read"] is None

    @pytest.mark.asyncio
    async def test_transport_failure_mapped(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        channel = factory_for(refuse).open("GET", "http://down", "utf-8")
        with pytest.raises(TransportError) as exc_info:
            await channel.send()
        assert exc_info.value.code == "TRANSPORT"
        assert exc_info.value.response is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_response_charset_falls_back_to_channel_encoding(self):
        def latin(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content="é".encode("iso-8859-1"))

        response = await factory_for(latin).open("GET", "http://h", "iso-8859-1").send()
        assert await response.text() == "é"

    @pytest.mark.asyncio
    async def test_supplied_client_is_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(Captured()))
        factory = HttpxChannelFactory(client)
        await factory.close()
        assert not client.is_closed
        assert isinstance(factory.open("GET", "http://h", "utf-8"), HttpxChannel)
        await client.aclose()


class TestRequestExecutor:
    @pytest.mark.asyncio
    async def test_entity_content_type_applied(self):
        captured = Captured()
        request = HttpRequest(
            method="POST",
            url="http://h/form",
            headers=(Pair("Accept", "text/plain"), Pair("X-A", "1")),
            entity=FormEntityWriter([Pair("p", "v")]),
        )
        response = await RequestExecutor(factory_for(captured)).execute(request)

        sent = captured.requests[0]
        assert sent.headers["content-type"] == "application/x-www-form-urlencoded; charset=utf-8"
        assert sent.headers["accept"] == "text/plain"
        assert sent.headers["x-a"] == "1"
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_explicit_content_type_header_wins(self):
        captured = Captured()
        request = HttpRequest(
            method="POST",
            url="http://h",
            headers=(Pair("Content-Type", "application/vnd.form"),),
            entity=FormEntityWriter([Pair("p", "v")]),
        )
        await RequestExecutor(factory_for(captured)).execute(request)
        assert captured.requests[0].headers["content-type"] == "application/vnd.form"

    @pytest.mark.asyncio
    async def test_non_success_status_keeps_response_open(self):
        executor = RequestExecutor(factory_for(Captured(status=503)))
        with pytest.raises(TransportError) as exc_info:
            await executor.execute(HttpRequest(method="GET", url="http://h/x"))

        error = exc_info.value
        assert error.code == "HTTP_503"
        assert error.status_code == 503
        assert error.context == {"method": "GET", "url": "http://h/x"}
        assert not error.response.closed
        assert await error.response.text() == "ok"
