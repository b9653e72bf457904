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
"""Request builder — runs interceptors and injectors in their fixed order."""

from __future__ import annotations

import logging

from restfly.client.context import RequestContext
from restfly.client.http import HttpRequest, HttpRequestBuilder
from restfly.client.utils import resolve

logger = logging.getLogger(__name__)


def join_url(end_point: str, context_path: str, path: str) -> str:
    """Concatenate URL parts without doubling or dropping the ``/`` between them."""
    url = end_point
    for part in (context_path, path):
        if not part:
            continue
        if url.endswith("/") and part.startswith("/"):
            url += part[1:]
        elif url and not url.endswith("/") and not part.startswith(("/", "?", ";")):
            url += "/" + part
        else:
            url += part
    return url


class RequestBuilder:
    """Turns a RequestContext into an HttpRequest, or ``None`` when cancelled.

    Order: global before-hook, method before-hook, injectors by parameter
    index, method after-hook, global after-hook. Any hook returning
    ``None`` stops the pipeline.
    """

    def initial(self, context: RequestContext) -> HttpRequestBuilder:
        interface = context.interface_config
        method = context.method_config
        builder = HttpRequestBuilder(
            method=method.http_method,
            url=join_url(interface.end_point, interface.context_path, method.path),
            encoding=interface.encoding,
            socket_timeout=method.socket_timeout,
            connection_timeout=method.connection_timeout,
        )
        if method.produces:
            builder = builder.with_accept(method.produces)
        if method.consumes:
            builder = builder.with_content_type(method.consumes)
        return builder

    async def build(self, context: RequestContext) -> HttpRequest | None:
        global_interceptor = context.interface_config.global_interceptor
        method_interceptor = context.method_config.request_interceptor
        name = context.method_config.name

        builder: HttpRequestBuilder | None = self.initial(context)

        builder = await resolve(global_interceptor.before_injection(builder, context))
        if builder is None:
            logger.debug("%s cancelled by global interceptor before injection", name)
            return None
        builder = await resolve(method_interceptor.before_injection(builder, context))
        if builder is None:
            logger.debug("%s cancelled by method interceptor before injection", name)
            return None

        for param in context.method_config.params:
            builder = await resolve(param.injector.inject(builder, context.param_context(param.index)))

        builder = await resolve(method_interceptor.after_injection(builder, context))
        if builder is None:
            logger.debug("%s cancelled by method interceptor after injection", name)
            return None
        builder = await resolve(global_interceptor.after_injection(builder, context))
        if builder is None:
            logger.debug("%s cancelled by global interceptor after injection", name)
            return None

        return builder.build()
