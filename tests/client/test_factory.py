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
"""End-to-end tests for RestClientFactory over an in-memory httpx transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Annotated

import httpx
import pytest
from pydantic import BaseModel

from restfly.client.adapters.httpx_adapter import HttpxChannelFactory
from restfly.client.declarative import get, post, rest_client, retry_handler
from restfly.client.factory import RestClientFactory
from restfly.client.params import Body, PathParam
from restfly.client.retry import RetryPolicy
from restfly.core.config import Config
from restfly.kernel.exceptions import CallFailedError, ConfigResolutionError


class Item(BaseModel):
    id: int
    name: str


@rest_client("http://api.test", context_path="/v1")
class ItemsApi:
    def __init__(self, tenant: str = "default") -> None:
        self.tenant = tenant

    @get("/items/{id}")
    async def get_item(self, item_id: Annotated[int, PathParam("id")]) -> Item: ...

    @get("/items")
    async def search(self, q: str, page: int = 1) -> list[Item]: ...

    @post("/items")
    async def create_item(self, item: Annotated[Item, Body()]) -> Item: ...

    def describe(self) -> str:
        return f"items for {self.tenant}"


@rest_client()
class Unbound:
    @get("/ping")
    @retry_handler(RetryPolicy(max_attempts=2, base_delay=timedelta(0)))
    async def ping(self) -> str: ...


class Recorder:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/ping"):
            return httpx.Response(200, text="pong")
        if request.method == "POST":
            return httpx.Response(201, content=request.content, headers={"Content-Type": "application/json"})
        tail = request.url.path.rsplit("/", 1)[1]
        if tail.isdigit():
            return httpx.Response(200, json={"id": int(tail), "name": "n"})
        return httpx.Response(200, json=[{"id": 1, "name": "a"}])


def class_key(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def factory(recorder: Recorder) -> RestClientFactory:
    return RestClientFactory(HttpxChannelFactory(transport=httpx.MockTransport(recorder)))


class TestCreate:
    @pytest.mark.asyncio
    async def test_get_item(self, factory, recorder):
        client = factory.create(ItemsApi)
        item = await client.get_item(42)

        assert item == Item(id=42, name="n")
        assert str(recorder.requests[0].url) == "http://api.test/v1/items/42"
        assert recorder.requests[0].method == "GET"

    @pytest.mark.asyncio
    async def test_keyword_arguments_and_defaults(self, factory, recorder):
        client = factory.create(ItemsApi)
        items = await client.search(q="widgets")

        assert items == [Item(id=1, name="a")]
        assert str(recorder.requests[0].url) == "http://api.test/v1/items?q=widgets&page=1"

    @pytest.mark.asyncio
    async def test_body_round_trip(self, factory, recorder):
        client = factory.create(ItemsApi)
        created = await client.create_item(Item(id=5, name="new"))

        assert created == Item(id=5, name="new")
        assert recorder.requests[0].headers["content-type"] == "application/json"

    @pytest.mark.asyncio
    async def test_non_endpoint_members_are_untouched(self, factory, recorder):
        client = factory.create(ItemsApi, "acme")

        assert isinstance(client, ItemsApi)
        assert client.describe() == "items for acme"
        assert repr(client) == "<ItemsApi client for http://api.test>"
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_unwired_method_raises(self):
        with pytest.raises(NotImplementedError):
            await ItemsApi().get_item(1)

    def test_config_resolved_once(self, factory):
        assert factory.config_for(ItemsApi) is factory.config_for(ItemsApi)
        assert factory.create(ItemsApi).__restfly_config__ is factory.config_for(ItemsApi)

    def test_unresolvable_class_fails_at_creation(self, factory):
        with pytest.raises(ConfigResolutionError) as exc_info:
            factory.create(Unbound)
        assert exc_info.value.code == "MISSING_END_POINT"


class TestWire:
    @pytest.mark.asyncio
    async def test_wires_existing_instance(self, factory, recorder):
        bean = ItemsApi("beta")
        assert factory.wire(bean) is bean
        assert (await bean.get_item(3)).id == 3
        assert len(recorder.requests) == 1

    def test_wiring_twice_is_a_no_op(self, factory):
        bean = factory.wire(ItemsApi())
        first = bean.get_item
        factory.wire(bean)
        assert bean.get_item == first


class TestConfiguration:
    @pytest.mark.asyncio
    async def test_properties_outrank_declarations(self, recorder):
        factory = RestClientFactory(
            HttpxChannelFactory(transport=httpx.MockTransport(recorder)),
            properties={
                "service.items.class": class_key(ItemsApi),
                "service.items.end-point": "http://override.test",
            },
        )
        await factory.create(ItemsApi).get_item(1)
        assert str(recorder.requests[0].url) == "http://override.test/v1/items/1"

    @pytest.mark.asyncio
    async def test_from_config(self, recorder):
        config = Config(
            {
                "restfly": {"client": {"socket-timeout": "2.5"}},
                "service": {"ping": {"class": class_key(Unbound), "end-point": "http://cfg.test"}},
            }
        )
        factory = RestClientFactory.from_config(
            config, HttpxChannelFactory(transport=httpx.MockTransport(recorder))
        )

        assert await factory.create(Unbound).ping() == "pong"
        method = factory.config_for(Unbound).method("ping")
        assert method.socket_timeout == 2.5
        assert recorder.requests[0].extensions["timeout"]["read"] == 2.5

    @pytest.mark.asyncio
    async def test_async_context_manager_closes_owned_client(self, recorder):
        channels = HttpxChannelFactory(transport=httpx.MockTransport(recorder))
        async with RestClientFactory(channels) as factory:
            await factory.create(ItemsApi).get_item(9)
        with pytest.raises(CallFailedError):
            await factory.create(ItemsApi).get_item(9)
