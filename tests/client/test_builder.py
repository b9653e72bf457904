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
"""Tests for RequestBuilder hook order, cancellation and DefaultInjector."""

from __future__ import annotations

from dataclasses import replace
from typing import Annotated, Any

import pytest

from restfly.client.builder import RequestBuilder, join_url
from restfly.client.config.model import InterfaceConfig
from restfly.client.config.resolver import ConfigResolver
from restfly.client.context import RequestContext
from restfly.client.declarative import get, post, produces, rest_client, timeouts
from restfly.client.http import HttpRequestBuilder, Pair
from restfly.client.injectors import DefaultInjector
from restfly.client.interceptors import CompositeRequestInterceptor, HeadersInterceptor, RequestInterceptor
from restfly.client.params import Body, CookieParam, FormParam, HeaderParam, MultiPartParam, PathParam
from restfly.kernel.exceptions import RequestBuildError


@rest_client("http://h", context_path="/ctx")
class RecordedApi:
    @get("/things/{id}")
    @produces("application/json")
    @timeouts(socket=1.5)
    async def call(
        self,
        thing_id: Annotated[int, PathParam("id")],
        q: str,
        token: Annotated[str, HeaderParam("X-Token")],
    ) -> dict: ...


@rest_client("http://h")
class InjectionApi:
    @get("/search")
    async def search(self, tags: list[str], page: int | None = None) -> list: ...

    @get("/things/{id}")
    async def thing(self, thing_id: Annotated[str | None, PathParam("id")]) -> dict: ...

    @post("/things")
    async def create(self, thing: Annotated[dict, Body()]) -> dict: ...

    @post("/upload")
    async def upload(
        self,
        note: Annotated[str, MultiPartParam()],
        data: Annotated[bytes, MultiPartParam()],
    ) -> None: ...

    @post("/form")
    async def form(
        self,
        a: Annotated[str, FormParam()],
        session: Annotated[str, CookieParam("sid")],
        trace: Annotated[str | None, HeaderParam("X-Trace", default="none")],
    ) -> None: ...


class Recorder(RequestInterceptor):
    def __init__(self, label: str, log: list[str], cancel_at: str | None = None) -> None:
        self.label = label
        self.log = log
        self.cancel_at = cancel_at

    def before_injection(self, builder: HttpRequestBuilder, context: RequestContext) -> HttpRequestBuilder | None:
        self.log.append(f"{self.label}-pre")
        return None if self.cancel_at == "pre" else builder

    async def after_injection(self, builder: HttpRequestBuilder, context: RequestContext) -> HttpRequestBuilder | None:
        self.log.append(f"{self.label}-post")
        return None if self.cancel_at == "post" else builder


class RecordingInjector(DefaultInjector):
    def __init__(self, log: list[str]) -> None:
        self.log = log

    def inject(self, builder, context):
        self.log.append(f"injector[{context.index}]")
        return super().inject(builder, context)


def recorded_config(log: list[str], cancel: tuple[str, str] | None = None) -> InterfaceConfig:
    cancel_label, cancel_at = cancel if cancel else (None, None)
    config = ConfigResolver().resolve(RecordedApi)
    method = config.method("call")
    method = replace(
        method,
        request_interceptor=Recorder("method", log, cancel_at if cancel_label == "method" else None),
        params=tuple(replace(p, injector=RecordingInjector(log)) for p in method.params),
    )
    return replace(
        config,
        global_interceptor=Recorder("global", log, cancel_at if cancel_label == "global" else None),
        methods=(method,),
    )


def context_for(cls: type, method: str, *args: Any) -> RequestContext:
    config = ConfigResolver().resolve(cls)
    return RequestContext(config, config.method(method), args)


class TestHookOrder:
    @pytest.mark.asyncio
    async def test_fixed_order(self):
        log: list[str] = []
        config = recorded_config(log)
        request = await RequestBuilder().build(RequestContext(config, config.method("call"), (7, "x", "t0k")))

        assert log == [
            "global-pre",
            "method-pre",
            "injector[0]",
            "injector[1]",
            "injector[2]",
            "method-post",
            "global-post",
        ]
        assert request is not None
        assert request.url == "http://h/ctx/things/7?q=x"
        assert request.header("X-Token") == "t0k"
        assert request.header("Accept") == "application/json"
        assert request.socket_timeout == 1.5

    @pytest.mark.asyncio
    async def test_order_is_reproducible(self):
        first: list[str] = []
        second: list[str] = []
        for log in (first, second):
            config = recorded_config(log)
            await RequestBuilder().build(RequestContext(config, config.method("call"), (1, "q", "t")))
        assert first == second

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("cancel", "expected_log"),
        [
            (("global", "pre"), ["global-pre"]),
            (("method", "pre"), ["global-pre", "method-pre"]),
            (
                ("method", "post"),
                ["global-pre", "method-pre", "injector[0]", "injector[1]", "injector[2]", "method-post"],
            ),
            (
                ("global", "post"),
                [
                    "global-pre",
                    "method-pre",
                    "injector[0]",
                    "injector[1]",
                    "injector[2]",
                    "method-post",
                    "global-post",
                ],
            ),
        ],
    )
    async def test_cancellation_short_circuits(self, cancel, expected_log):
        log: list[str] = []
        config = recorded_config(log, cancel)
        request = await RequestBuilder().build(RequestContext(config, config.method("call"), (7, "x", "t")))
        assert request is None
        assert log == expected_log


class TestInterceptors:
    @pytest.mark.asyncio
    async def test_composite_runs_in_order_and_stops_on_veto(self):
        log: list[str] = []
        composite = CompositeRequestInterceptor(Recorder("a", log), Recorder("b", log, "pre"), Recorder("c", log))
        result = await composite.before_injection(HttpRequestBuilder("GET", "http://h"), None)  # type: ignore[arg-type]
        assert result is None
        assert log == ["a-pre", "b-pre"]

    def test_headers_interceptor(self):
        interceptor = HeadersInterceptor({"User-Agent": "restfly", "X-Env": "test"})
        builder = interceptor.before_injection(HttpRequestBuilder("GET", "http://h"), None)  # type: ignore[arg-type]
        assert builder.build().headers == (Pair("User-Agent", "restfly"), Pair("X-Env", "test"))


class TestDefaultInjector:
    @pytest.mark.asyncio
    async def test_sequences_expand_and_none_is_skipped(self):
        request = await RequestBuilder().build(context_for(InjectionApi, "search", ["a", "b"], None))
        assert request.url == "http://h/search?tags=a&tags=b"

    @pytest.mark.asyncio
    async def test_none_path_param_rejected(self):
        with pytest.raises(RequestBuildError) as exc_info:
            await RequestBuilder().build(context_for(InjectionApi, "thing", None))
        assert exc_info.value.code == "NULL_PATH_PARAM"

    @pytest.mark.asyncio
    async def test_body(self):
        request = await RequestBuilder().build(context_for(InjectionApi, "create", {"name": "x"}))
        assert request.method == "POST"
        assert request.entity.to_bytes() == b'{"name":"x"}'
        assert request.content_type == "application/json"

    @pytest.mark.asyncio
    async def test_multipart_parts(self):
        request = await RequestBuilder().build(context_for(InjectionApi, "upload", "hello", b"\x00\xff"))
        body = request.entity.to_bytes()
        assert request.content_type.startswith("multipart/form-data; boundary=")
        assert b'name="note"\r\nContent-Type: text/plain; charset=utf-8\r\n\r\nhello\r\n' in body
        assert b'name="data"\r\nContent-Type: application/octet-stream\r\n\r\n\x00\xff\r\n' in body

    @pytest.mark.asyncio
    async def test_form_cookie_and_default_header(self):
        request = await RequestBuilder().build(context_for(InjectionApi, "form", "1", "s3", None))
        assert request.entity.to_bytes() == b"a=1"
        assert request.header("Cookie") == "sid=s3"
        assert request.header("X-Trace") == "none"


class TestJoinUrl:
    @pytest.mark.parametrize(
        ("parts", "expected"),
        [
            (("http://h", "", ""), "http://h"),
            (("http://h", "/v1", "/items"), "http://h/v1/items"),
            (("http://h/", "/v1/", "/items"), "http://h/v1/items"),
            (("http://h", "v1", "items"), "http://h/v1/items"),
            (("http://h", "", "?q=1"), "http://h?q=1"),
        ],
    )
    def test_join(self, parts, expected):
        assert join_url(*parts) == expected
