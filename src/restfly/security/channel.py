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
"""Authorization channel — signs each request over its URL and body parameters."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import BinaryIO

from restfly.client.entity import EntityWriter
from restfly.client.http import HttpResponse, Pair, parse_query, short_content_type
from restfly.client.ports.outbound import HttpChannel, HttpChannelFactory
from restfly.client.utils import resolve
from restfly.kernel.exceptions import RestflyException, TransportError
from restfly.security.authorization import Authorization
from restfly.security.extractors import EntityParamExtractor, default_extractors

logger = logging.getLogger(__name__)


class RewritableEntityWriter(EntityWriter):
    """Serializes the delegate once and replays the same bytes on every write."""

    def __init__(self, delegate: EntityWriter) -> None:
        self._delegate = delegate
        self._content: bytes | None = None

    @property
    def content_type(self) -> str:
        return self._delegate.content_type

    @property
    def content_length(self) -> int:
        if self._content is not None:
            return len(self._content)
        return self._delegate.content_length

    def materialize(self) -> bytes:
        if self._content is None:
            self._content = self._delegate.to_bytes()
        return self._content

    def write_to(self, out: BinaryIO) -> None:
        out.write(self.materialize())

    def to_bytes(self) -> bytes:
        return self.materialize()


class AuthorizationHttpChannel:
    """HttpChannel decorator adding an ``Authorization`` header at send time.

    Everything but ``send`` is passed straight to the delegate. The query
    parameters of *url* are collected up front; when the entity's content
    type has an extractor, its parameters are added at send time.
    """

    def __init__(
        self,
        delegate: HttpChannel,
        authorization: Authorization,
        method: str,
        url: str,
        charset: str,
        extractors: Mapping[str, EntityParamExtractor],
    ) -> None:
        self._delegate = delegate
        self._authorization = authorization
        self._method = method
        self._url = url
        self._charset = charset
        self._extractors = extractors
        self._parameters: list[Pair] = parse_query(url)
        self._content_type: str | None = None
        self._full_content_type: str | None = None
        self._writer: EntityWriter | None = None

    @property
    def parameters(self) -> list[Pair]:
        return list(self._parameters)

    def _extractor(self) -> EntityParamExtractor | None:
        if self._content_type is None:
            return None
        return self._extractors.get(self._content_type)

    def set_header(self, name: str, value: str) -> None:
        self._delegate.set_header(name, value)

    def add_header(self, name: str, value: str) -> None:
        self._delegate.add_header(name, value)

    def set_content_type(self, content_type: str) -> None:
        self._delegate.set_content_type(content_type)
        self._content_type = short_content_type(content_type)
        self._full_content_type = content_type

    def set_accept(self, value: str) -> None:
        self._delegate.set_accept(value)

    def set_socket_timeout(self, timeout: float | None) -> None:
        self._delegate.set_socket_timeout(timeout)

    def set_connection_timeout(self, timeout: float | None) -> None:
        self._delegate.set_connection_timeout(timeout)

    def write_entity_with(self, writer: EntityWriter) -> None:
        if self._extractor() is not None:
            writer = RewritableEntityWriter(writer)
        self._writer = writer
        self._delegate.write_entity_with(writer)

    async def send(self) -> HttpResponse:
        extractor = self._extractor()
        if extractor is not None and self._writer is not None:
            data = self._writer.to_bytes()
            self._parameters.extend(
                extractor.extract(self._full_content_type or "", self._charset, data)
            )

        try:
            token = await resolve(
                self._authorization.authorize(self._method, self._url, self._charset, list(self._parameters))
            )
        except RestflyException:
            raise
        except Exception as exc:
            raise TransportError(
                f"Authorization of {self._method} {self._url} failed: {exc}",
                code="AUTHORIZATION",
                context={"method": self._method, "url": self._url},
            ) from exc

        logger.debug("Signed %s %s over %d parameter(s)", self._method, self._url, len(self._parameters))
        self._delegate.set_header("Authorization", token.header_value)
        return await self._delegate.send()


class AuthorizationChannelFactory:
    """Wraps every channel of *delegate* in an ``AuthorizationHttpChannel``."""

    def __init__(
        self,
        delegate: HttpChannelFactory,
        authorization: Authorization,
        extractors: Mapping[str, EntityParamExtractor] | None = None,
    ) -> None:
        self._delegate = delegate
        self._authorization = authorization
        self._extractors = dict(extractors) if extractors is not None else default_extractors()

    @property
    def authorization(self) -> Authorization:
        return self._authorization

    def open(self, method: str, url: str, encoding: str) -> AuthorizationHttpChannel:
        return AuthorizationHttpChannel(
            self._delegate.open(method, url, encoding),
            self._authorization,
            method,
            url,
            encoding,
            self._extractors,
        )

    async def close(self) -> None:
        await self._delegate.close()
