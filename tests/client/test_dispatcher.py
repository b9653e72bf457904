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
"""Tests for ResponseDispatcher, the default response handler and deserializers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import replace
from typing import Any

import httpx
import pytest
from pydantic import BaseModel

from restfly.client.config.resolver import ConfigResolver
from restfly.client.context import RequestContext, ResponseContext
from restfly.client.declarative import get, rest_client
from restfly.client.deserializers import DeserializerRegistry, JsonDeserializer, TextDeserializer
from restfly.client.dispatcher import ResponseDispatcher, StreamKind, stream_kind
from restfly.client.handlers import DefaultResponseHandler
from restfly.client.http import HttpResponse
from restfly.kernel.exceptions import DispatchError, HandlerError


class Item(BaseModel):
    id: int
    name: str


@rest_client("http://h")
class ItemsApi:
    @get("/items/1")
    async def item(self) -> Item: ...

    @get("/items")
    async def items(self) -> list[Item]: ...

    @get("/raw")
    async def raw(self) -> AsyncIterator[bytes]: ...

    @get("/lines")
    async def lines(self) -> AsyncIterator[str]: ...

    @get("/response")
    async def response(self) -> HttpResponse: ...

    @get("/count")
    async def count(self) -> int: ...

    @get("/blob")
    async def blob(self) -> bytes: ...

    @get("/nothing")
    async def nothing(self) -> None: ...


class TrackingResponse(HttpResponse):
    def __init__(self, raw: httpx.Response) -> None:
        super().__init__(raw)
        self.close_calls = 0

    async def close(self) -> None:
        self.close_calls += 1
        await super().close()


class ExplodingHandler:
    def handle(self, response_context: ResponseContext) -> Any:
        raise RuntimeError("boom")


def response_context(method: str, raw: httpx.Response, **overrides: Any) -> tuple[ResponseContext, TrackingResponse]:
    config = ConfigResolver().resolve(ItemsApi)
    method_config = config.method(method)
    if overrides:
        method_config = replace(method_config, **overrides)
    response = TrackingResponse(raw)
    return ResponseContext(RequestContext(config, method_config, ()), response), response


def json_response(payload: Any, content_type: str = "application/json") -> httpx.Response:
    return httpx.Response(200, json=payload, headers={"Content-Type": content_type})


class TestStreamKind:
    @pytest.mark.parametrize(
        ("return_type", "kind"),
        [
            (AsyncIterator[bytes], StreamKind.BYTES),
            (AsyncIterator[str], StreamKind.TEXT),
            (HttpResponse, StreamKind.RESPONSE),
            (bytes, StreamKind.NONE),
            (list[Item], StreamKind.NONE),
            (AsyncIterator[int], StreamKind.NONE),
        ],
    )
    def test_classification(self, return_type, kind):
        assert stream_kind(return_type) is kind


class TestResponseDispatcher:
    @pytest.mark.asyncio
    async def test_model_is_deserialized_and_response_closed(self):
        ctx, response = response_context("item", json_response({"id": 1, "name": "one"}))
        result = await ResponseDispatcher().dispatch(ctx)
        assert result == Item(id=1, name="one")
        assert response.close_calls == 1

    @pytest.mark.asyncio
    async def test_generic_list(self):
        ctx, _ = response_context("items", json_response([{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]))
        result = await ResponseDispatcher().dispatch(ctx)
        assert [i.id for i in result] == [1, 2]

    @pytest.mark.asyncio
    async def test_raw_byte_stream_is_left_open(self):
        ctx, response = response_context("raw", httpx.Response(200, content=b"chunk"))
        stream = await ResponseDispatcher().dispatch(ctx)
        assert response.close_calls == 0
        assert b"".join([part async for part in stream]) == b"chunk"
        await response.close()

    @pytest.mark.asyncio
    async def test_raw_text_stream_is_left_open(self):
        ctx, response = response_context("lines", httpx.Response(200, text="a\nb"))
        stream = await ResponseDispatcher().dispatch(ctx)
        assert response.close_calls == 0
        assert "".join([part async for part in stream]) == "a\nb"

    @pytest.mark.asyncio
    async def test_response_return_type_hands_over_response(self):
        ctx, response = response_context("response", httpx.Response(204))
        assert await ResponseDispatcher().dispatch(ctx) is response
        assert not response.closed

    @pytest.mark.asyncio
    async def test_handler_failure_wrapped_and_response_closed_once(self):
        ctx, response = response_context(
            "item", json_response({"id": 1, "name": "x"}), response_handler=ExplodingHandler()
        )
        with pytest.raises(HandlerError) as exc_info:
            await ResponseDispatcher().dispatch(ctx)
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert response.close_calls == 1

    @pytest.mark.asyncio
    async def test_missing_response(self):
        config = ConfigResolver().resolve(ItemsApi)
        ctx = ResponseContext(RequestContext(config, config.method("item"), ()))
        with pytest.raises(DispatchError) as exc_info:
            await ResponseDispatcher().dispatch(ctx)
        assert exc_info.value.code == "NO_RESPONSE"


class TestDefaultResponseHandler:
    @pytest.mark.asyncio
    async def test_problem_json_suffix(self):
        ctx, _ = response_context("item", json_response({"id": 3, "name": "p"}, "application/problem+json"))
        assert (await DefaultResponseHandler().handle(ctx)).id == 3

    @pytest.mark.asyncio
    async def test_text_coerced_to_scalar(self):
        ctx, _ = response_context("count", httpx.Response(200, text=" 42\n"))
        assert await DefaultResponseHandler().handle(ctx) == 42

    @pytest.mark.asyncio
    async def test_untyped_body_read_by_declared_type(self):
        ctx, _ = response_context("blob", httpx.Response(200, content=b"\x01\x02"))
        assert await DefaultResponseHandler().handle(ctx) == b"\x01\x02"

    @pytest.mark.asyncio
    async def test_none_return_type_skips_body(self):
        ctx, _ = response_context("nothing", json_response({"ignored": True}))
        assert await DefaultResponseHandler().handle(ctx) is None

    @pytest.mark.asyncio
    async def test_unsupported_content_type(self):
        ctx, _ = response_context(
            "item", httpx.Response(200, content=b"<x/>", headers={"Content-Type": "application/xml"})
        )
        with pytest.raises(DispatchError) as exc_info:
            await DefaultResponseHandler().handle(ctx)
        assert exc_info.value.code == "UNSUPPORTED_CONTENT_TYPE"

    @pytest.mark.asyncio
    async def test_return_type_mismatch(self):
        ctx, _ = response_context("item", json_response({"id": "not-a-number"}))
        with pytest.raises(DispatchError) as exc_info:
            await DefaultResponseHandler().handle(ctx)
        assert exc_info.value.code == "RETURN_TYPE_MISMATCH"

    @pytest.mark.asyncio
    async def test_custom_registry(self):
        registry = DeserializerRegistry()
        registry.register("application/x-count", TextDeserializer())
        ctx, _ = response_context(
            "count", httpx.Response(200, content=b"7", headers={"Content-Type": "application/x-count"})
        )
        assert await DefaultResponseHandler(registry).handle(ctx) == 7


class TestDeserializers:
    def test_json_untyped(self):
        assert JsonDeserializer().deserialize(b'{"a": [1, 2]}', "utf-8", Any) == {"a": [1, 2]}

    def test_json_non_utf8_charset(self):
        data = '{"name": "caf\xe9"}'.encode("iso-8859-1")
        assert JsonDeserializer().deserialize(data, "iso-8859-1", dict) == {"name": "café"}

    def test_registry_wildcard(self):
        registry = DeserializerRegistry()
        assert isinstance(registry.find("text/csv"), TextDeserializer)
        assert registry.find("image/png") is None
        assert registry.find(None) is None
