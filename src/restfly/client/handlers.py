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
"""Response and error handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from restfly.client.context import ResponseContext
from restfly.client.deserializers import DeserializerRegistry, JsonDeserializer
from restfly.client.utils import resolve
from restfly.kernel.exceptions import CallFailedError, DispatchError, RestflyException


@runtime_checkable
class ResponseHandler(Protocol):
    """Converts a successful response into the method's declared return value.

    The dispatcher closes the response once the handler returns or raises.
    """

    def handle(self, response_context: ResponseContext) -> Any | Awaitable[Any]: ...


@runtime_checkable
class ErrorHandler(Protocol):
    """Produces the outcome of a call whose retries are exhausted.

    The return value becomes the call's result; raising makes the call fail.
    """

    def handle(self, response_context: ResponseContext, exception: BaseException) -> Any | Awaitable[Any]: ...


def _is_none_type(tp: Any) -> bool:
    return tp is None or tp is type(None)


class DefaultResponseHandler:
    """Deserializes the body into the declared return type by content type.

    Responses without a content type are read according to the declared
    type: ``bytes`` raw, ``str`` as text, anything else as JSON.
    """

    def __init__(self, registry: DeserializerRegistry | None = None) -> None:
        self._registry = registry or DeserializerRegistry()

    async def handle(self, response_context: ResponseContext) -> Any:
        response = response_context.response
        target = response_context.return_type
        if response is None or _is_none_type(target):
            return None

        data = await response.read()
        content_type = response.content_type
        deserializer = self._registry.find(content_type)
        if deserializer is None:
            if content_type is None:
                if target is bytes:
                    return data
                if target is str:
                    return data.decode(response.charset)
                if not data:
                    return None
                deserializer = JsonDeserializer()
            else:
                raise DispatchError(
                    f"No deserializer for content type '{content_type}' "
                    f"(method {response_context.method_config.name})",
                    code="UNSUPPORTED_CONTENT_TYPE",
                    context={"content_type": content_type},
                )
        try:
            return deserializer.deserialize(data, response.charset, target)
        except ValueError as exc:
            raise DispatchError(
                f"Cannot convert response of {response_context.method_config.name} to {target!r}: {exc}",
                cause=exc,
                code="RETURN_TYPE_MISMATCH",
            ) from exc


class RethrowErrorHandler:
    """Default error handler: re-raises, wrapping foreign exceptions in CallFailedError."""

    def handle(self, response_context: ResponseContext, exception: BaseException) -> Any:
        if isinstance(exception, RestflyException):
            raise exception
        raise CallFailedError(
            f"Call to {response_context.method_config.name} failed: {exception}",
            cause=exception,
        ) from exception


class ReturnNoneErrorHandler:
    """Swallows the failure; the call returns ``None``."""

    def handle(self, response_context: ResponseContext, exception: BaseException) -> None:
        return None


class FallbackErrorHandler:
    """Returns a fallback for selected exception types and re-raises the rest.

    Exactly one of *fallback_method* or *fallback_value* should be provided.
    *fallback_method* receives the response context and the exception and
    may be ``async``.
    """

    def __init__(
        self,
        *,
        fallback_method: Callable[[ResponseContext, BaseException], Any] | None = None,
        fallback_value: Any = None,
        on: tuple[type[BaseException], ...] = (Exception,),
    ) -> None:
        if fallback_method is None and fallback_value is None:
            raise ValueError("Either fallback_method or fallback_value must be provided")
        self._method = fallback_method
        self._value = fallback_value
        self._on = on
        self._rethrow = RethrowErrorHandler()

    async def handle(self, response_context: ResponseContext, exception: BaseException) -> Any:
        if not isinstance(exception, self._on):
            return self._rethrow.handle(response_context, exception)
        if self._method is not None:
            return await resolve(self._method(response_context, exception))
        return self._value
