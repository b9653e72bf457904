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
"""Resolved client configuration — immutable, built once per client interface."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from restfly.client.handlers import ErrorHandler, ResponseHandler
    from restfly.client.injectors import Injector
    from restfly.client.interceptors import RequestInterceptor
    from restfly.client.retry import RetryHandler
    from restfly.client.serializers import Serializer


#: Facets configurable on a parameter (and inherited from method, interface, globals).
PARAM_FACETS = ("name", "destination", "serializer", "injector", "default")

#: Facets configurable on a method (and inherited from interface, globals).
METHOD_FACETS = (
    "path",
    "http_method",
    "socket_timeout",
    "connection_timeout",
    "request_interceptor",
    "response_handler",
    "error_handler",
    "retry_handler",
    "produces",
    "consumes",
)

#: Facets only meaningful for the interface as a whole.
INTERFACE_FACETS = ("end_point", "context_path", "encoding", "global_interceptor")


class Destination(enum.Enum):
    """Part of the HTTP request a parameter is written to."""

    URL = "url"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    MATRIX = "matrix"
    FORM = "form"
    MULTIPART = "multipart"
    BODY = "body"

    @classmethod
    def parse(cls, value: str | Destination) -> Destination:
        """Parse a destination name, case-insensitively. ``PATH`` aliases ``URL``."""
        if isinstance(value, Destination):
            return value
        text = str(value).strip().lower()
        if text == "path":
            return cls.URL
        try:
            return cls(text)
        except ValueError:
            raise ValueError(
                f"Unknown destination '{value}', expected one of "
                f"{', '.join(d.name for d in cls)}"
            ) from None


@dataclass(frozen=True)
class MethodSignature:
    """Erased signature of a client method, rendered as ``name(type,type)``."""

    name: str
    param_types: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.name}({','.join(self.param_types)})"


@dataclass(frozen=True)
class ParamConfig:
    """Resolved configuration of one method parameter."""

    index: int
    name: str
    destination: Destination
    serializer: Serializer
    injector: Injector
    default: Any = None


@dataclass(frozen=True)
class MethodConfig:
    """Resolved configuration of one client method.

    ``params`` is index-aligned with the declared parameters (``self``
    excluded). Timeouts are seconds, ``None`` meaning no timeout.
    """

    name: str
    signature: MethodSignature
    http_method: str
    path: str
    socket_timeout: float | None
    connection_timeout: float | None
    request_interceptor: RequestInterceptor
    response_handler: ResponseHandler
    error_handler: ErrorHandler
    retry_handler: RetryHandler
    return_type: Any = None
    produces: str | None = None
    consumes: str | None = None
    params: tuple[ParamConfig, ...] = ()

    @property
    def param_count(self) -> int:
        return len(self.params)

    def param(self, index: int) -> ParamConfig:
        return self.params[index]


@dataclass(frozen=True)
class InterfaceConfig:
    """Resolved configuration of a client interface and all of its methods."""

    interface: type
    end_point: str
    context_path: str
    encoding: str
    global_interceptor: RequestInterceptor
    methods: tuple[MethodConfig, ...] = ()
    _by_name: dict[str, MethodConfig] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_name.update({m.name: m for m in self.methods})

    def method(self, name: str) -> MethodConfig:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"{self.interface.__qualname__} has no client method '{name}'") from None

    @property
    def method_names(self) -> list[str]:
        return [m.name for m in self.methods]
