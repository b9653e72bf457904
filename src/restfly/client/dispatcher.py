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
"""Response dispatcher — maps the declared return type to a result."""

from __future__ import annotations

import collections.abc
import enum
from typing import Any, get_args, get_origin

from restfly.client.context import ResponseContext
from restfly.client.http import HttpResponse
from restfly.client.utils import resolve
from restfly.kernel.exceptions import DispatchError, HandlerError, RestflyException


class StreamKind(enum.Enum):
    NONE = enum.auto()
    BYTES = enum.auto()
    TEXT = enum.auto()
    RESPONSE = enum.auto()


def stream_kind(return_type: Any) -> StreamKind:
    """Classify return types that hand the open response to the caller.

    ``AsyncIterator[bytes]`` is a raw byte stream, ``AsyncIterator[str]`` a
    raw character stream and ``HttpResponse`` the response itself.
    """
    if return_type is HttpResponse:
        return StreamKind.RESPONSE
    origin = get_origin(return_type)
    if origin in (collections.abc.AsyncIterator, collections.abc.AsyncIterable):
        args = get_args(return_type)
        if args == (bytes,):
            return StreamKind.BYTES
        if args == (str,):
            return StreamKind.TEXT
    return StreamKind.NONE


class ResponseDispatcher:
    """Produces a method's return value from a successful response.

    Raw stream return types get the open stream; the caller then owns it.
    Every other path closes the response before returning or raising.
    """

    async def dispatch(self, response_context: ResponseContext) -> Any:
        response = response_context.response
        if response is None:
            raise DispatchError(
                f"No response to dispatch for {response_context.method_config.name}",
                code="NO_RESPONSE",
            )

        kind = stream_kind(response_context.return_type)
        if kind is StreamKind.BYTES:
            return response.aiter_bytes()
        if kind is StreamKind.TEXT:
            return response.aiter_text()
        if kind is StreamKind.RESPONSE:
            return response

        handler = response_context.method_config.response_handler
        try:
            return await resolve(handler.handle(response_context))
        except RestflyException:
            raise
        except Exception as exc:
            raise HandlerError(
                f"Response handler of {response_context.method_config.name} failed: {exc}",
                cause=exc,
            ) from exc
        finally:
            await response.close()
