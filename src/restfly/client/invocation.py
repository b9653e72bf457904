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
"""Invocation engine — the per-call retry and error state machine."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from restfly.client.builder import RequestBuilder
from restfly.client.config.model import InterfaceConfig, MethodConfig
from restfly.client.context import RequestContext, ResponseContext
from restfly.client.dispatcher import ResponseDispatcher
from restfly.client.http import HttpResponse
from restfly.client.transport import RequestExecutor
from restfly.client.utils import resolve
from restfly.kernel.exceptions import HandlerError, RestflyException, TransportError, describe

logger = logging.getLogger(__name__)


class InvocationEngine:
    """Runs one client call from arguments to result.

    Each attempt rebuilds the request from scratch (interceptors and
    injectors included), sends it and dispatches the response. A failed
    attempt, whether it failed building, sending or dispatching, goes to the method's retry handler; once it declines, the
    error handler decides the outcome. The engine itself never limits the
    number of attempts.
    """

    def __init__(
        self,
        config: InterfaceConfig,
        executor: RequestExecutor,
        builder: RequestBuilder | None = None,
        dispatcher: ResponseDispatcher | None = None,
    ) -> None:
        self._config = config
        self._executor = executor
        self._builder = builder or RequestBuilder()
        self._dispatcher = dispatcher or ResponseDispatcher()

    @property
    def config(self) -> InterfaceConfig:
        return self._config

    async def invoke(self, method: MethodConfig | str, args: Sequence[Any]) -> Any:
        method_config = self._config.method(method) if isinstance(method, str) else method
        if len(args) != method_config.param_count:
            raise TypeError(
                f"{method_config.signature} takes {method_config.param_count} "
                f"argument(s), got {len(args)}"
            )
        request_context = RequestContext(self._config, method_config, tuple(args))
        name = method_config.name

        attempt = 1
        while True:
            response: HttpResponse | None = None
            try:
                request = await self._builder.build(request_context)
                if request is None:
                    logger.debug("%s cancelled by interceptor", name)
                    return None

                logger.debug("%s attempt %d: %s %s", name, attempt, request.method, request.url)
                response = await self._executor.execute(request)
                return await self._dispatcher.dispatch(ResponseContext(request_context, response))
            except TransportError as exc:
                failure: Exception = exc
                response = exc.response if exc.response is not None else response
            except Exception as exc:
                failure = exc

            response_context = ResponseContext(request_context, response, failure)
            try:
                should_retry = await resolve(
                    method_config.retry_handler.retry(response_context, failure, attempt)
                )
            except BaseException:
                await _close(response)
                raise

            if should_retry:
                logger.info("Retrying %s after attempt %d", name, attempt, extra=describe(failure))
                await _close(response)
                attempt += 1
                continue

            logger.warning("%s failed after %d attempt(s)", name, attempt, extra=describe(failure))
            try:
                return await resolve(method_config.error_handler.handle(response_context, failure))
            except RestflyException:
                raise
            except Exception as exc:
                if exc is failure:
                    raise
                raise HandlerError(
                    f"Error handler of {name} failed: {exc}", cause=exc
                ) from exc
            finally:
                await _close(response)


async def _close(response: HttpResponse | None) -> None:
    if response is not None:
        await response.close()
