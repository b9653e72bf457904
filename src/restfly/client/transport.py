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
"""Request executor — hands a finalized request to a channel and checks the status."""

from __future__ import annotations

import logging

from restfly.client.http import HttpRequest, HttpResponse
from restfly.client.ports.outbound import HttpChannelFactory
from restfly.kernel.exceptions import TransportError

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Sends ``HttpRequest`` objects through channels from *channel_factory*.

    A non-2xx status raises ``TransportError`` carrying the still-open
    response, so retry and error handlers can inspect it.
    """

    def __init__(self, channel_factory: HttpChannelFactory) -> None:
        self._channel_factory = channel_factory

    @property
    def channel_factory(self) -> HttpChannelFactory:
        return self._channel_factory

    async def execute(self, request: HttpRequest) -> HttpResponse:
        channel = self._channel_factory.open(request.method, request.url, request.encoding)
        channel.set_socket_timeout(request.socket_timeout)
        channel.set_connection_timeout(request.connection_timeout)
        for name, value in request.headers:
            if name.lower() == "content-type":
                channel.set_content_type(value)
            elif name.lower() == "accept":
                channel.set_accept(value)
            else:
                channel.add_header(name, value)
        if request.entity is not None:
            if request.header("Content-Type") is None:
                channel.set_content_type(request.entity.content_type)
            channel.write_entity_with(request.entity)

        logger.debug("%s %s", request.method, request.url)
        response = await channel.send()
        if not response.is_success:
            raise TransportError(
                f"{request.method} {request.url} returned HTTP {response.status_code}",
                response=response,
                code=f"HTTP_{response.status_code}",
                context={"method": request.method, "url": request.url},
            )
        return response
