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
"""Declarative REST client — @rest_client with @get/@post etc. and facet decorators.

Decorators only record metadata on the class and its functions. Nothing is
resolved until ``RestClientFactory.create`` reads it through
``DeclarativeConfigSource``.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar

from restfly.client.config.model import INTERFACE_FACETS, METHOD_FACETS, PARAM_FACETS

F = TypeVar("F", bound=Callable[..., Any])
T = TypeVar("T")

_METHOD_LEVEL = frozenset(METHOD_FACETS + PARAM_FACETS)
_INTERFACE_LEVEL = frozenset(INTERFACE_FACETS) | _METHOD_LEVEL


def _check_facets(facets: dict[str, Any], allowed: frozenset[str], where: str) -> None:
    unknown = sorted(set(facets) - allowed)
    if unknown:
        raise TypeError(f"Unknown {where} facet(s): {', '.join(unknown)}")


def rest_client(
    end_point: str | None = None,
    *,
    alias: str | None = None,
    **facets: Any,
) -> Callable[[type[T]], type[T]]:
    """Mark a class as a declarative REST client interface.

    Methods decorated with ``@get``, ``@post``, etc. get implementations
    generated by ``RestClientFactory``.

    Args:
        end_point: Base URL of the service. May be left out when a
            key-value source provides it.
        alias: Name the class is known by in key-value configuration
            (``service.<alias>.*``).
        **facets: Interface-level facets (``context_path``, ``encoding``,
            ``global_interceptor``) and defaults for every method and
            parameter (``socket_timeout``, ``retry_handler``, ...).
    """
    _check_facets(facets, _INTERFACE_LEVEL, "interface")
    if end_point is not None:
        facets["end_point"] = end_point

    def decorator(cls: type[T]) -> type[T]:
        cls.__restfly_client__ = True  # type: ignore[attr-defined]
        cls.__restfly_alias__ = alias  # type: ignore[attr-defined]
        cls.__restfly_facets__ = dict(facets)  # type: ignore[attr-defined]
        return cls

    return decorator


def _add_facets(func: Any, facets: dict[str, Any]) -> None:
    # Copy on write: functools.wraps shares the dict with the wrapped function.
    existing = getattr(func, "__restfly_method_facets__", {})
    func.__restfly_method_facets__ = {**existing, **facets}


def endpoint(path: str | None = None, http_method: str | None = None) -> Callable[[F], F]:
    """Declare a client method; ``@get``/``@post``/... are shortcuts for it.

    With ``http_method`` left out the verb comes from configuration (``GET``
    when nothing sets it).
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def placeholder(*args: Any, **kwargs: Any) -> Any:
            raise NotImplementedError(
                f"{func.__qualname__} has not been wired by RestClientFactory. "
                "Create the client with RestClientFactory.create()."
            )

        facets: dict[str, Any] = {}
        if path is not None:
            facets["path"] = path
        if http_method is not None:
            facets["http_method"] = http_method.upper()
        _add_facets(placeholder, facets)
        placeholder.__restfly_endpoint__ = True  # type: ignore[attr-defined]
        return placeholder  # type: ignore[return-value]

    return decorator


def _make_http_method_decorator(method: str) -> Callable[[str | None], Callable[[F], F]]:
    def method_decorator(path: str | None = None) -> Callable[[F], F]:
        return endpoint(path, method)

    method_decorator.__name__ = method.lower()
    method_decorator.__doc__ = f"Declare an HTTP {method} client method."
    return method_decorator


get = _make_http_method_decorator("GET")
post = _make_http_method_decorator("POST")
put = _make_http_method_decorator("PUT")
delete = _make_http_method_decorator("DELETE")
patch = _make_http_method_decorator("PATCH")
head = _make_http_method_decorator("HEAD")
options = _make_http_method_decorator("OPTIONS")


def method_config(**facets: Any) -> Callable[[F], F]:
    """Set method-level facets, and defaults for the method's parameters.

    May be stacked above or below the verb decorator.
    """
    _check_facets(facets, _METHOD_LEVEL, "method")

    def decorator(func: F) -> F:
        _add_facets(func, facets)
        return func

    return decorator


def timeouts(
    socket: float | timedelta | None = None,
    connection: float | timedelta | None = None,
) -> Callable[[F], F]:
    """Read and connect timeouts, in seconds."""
    facets: dict[str, Any] = {}
    if socket is not None:
        facets["socket_timeout"] = socket
    if connection is not None:
        facets["connection_timeout"] = connection
    return method_config(**facets)


def request_interceptor(interceptor: Any) -> Callable[[F], F]:
    return method_config(request_interceptor=interceptor)


def response_handler(handler: Any) -> Callable[[F], F]:
    return method_config(response_handler=handler)


def error_handler(handler: Any) -> Callable[[F], F]:
    return method_config(error_handler=handler)


def retry_handler(handler: Any) -> Callable[[F], F]:
    return method_config(retry_handler=handler)


def produces(media_type: str) -> Callable[[F], F]:
    """Media type sent as the ``Accept`` header."""
    return method_config(produces=media_type)


def consumes(media_type: str) -> Callable[[F], F]:
    """Content type of the request body, overriding the serializer's."""
    return method_config(consumes=media_type)
