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
"""Parameter markers for ``typing.Annotated`` client method parameters.

Usage::

    @get("/items/{id}")
    async def get_item(self, item_id: Annotated[int, PathParam("id")]) -> Item: ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from restfly.client.config.model import Destination

T = TypeVar("T")


@dataclass(frozen=True)
class Param:
    """Parameter-level facets. Unset facets (``None``) fall through to the method.

    ``serializer`` and ``injector`` may be instances, classes (instantiated
    with no arguments) or import path strings.
    """

    name: str | None = None
    destination: Destination | str | None = None
    serializer: Any = None
    injector: Any = None
    default: Any = None

    def facets(self) -> dict[str, Any]:
        """Facets set on this marker, keyed by facet name."""
        values = {
            "name": self.name,
            "destination": self.destination,
            "serializer": self.serializer,
            "injector": self.injector,
            "default": self.default,
        }
        return {k: v for k, v in values.items() if v is not None}


@dataclass(frozen=True)
class PathParam(Param):
    """Fills the ``{name}`` placeholder of the method path."""

    destination: Destination | str | None = field(default=Destination.URL, init=False)


@dataclass(frozen=True)
class QueryParam(Param):
    destination: Destination | str | None = field(default=Destination.QUERY, init=False)


@dataclass(frozen=True)
class HeaderParam(Param):
    destination: Destination | str | None = field(default=Destination.HEADER, init=False)


@dataclass(frozen=True)
class CookieParam(Param):
    destination: Destination | str | None = field(default=Destination.COOKIE, init=False)


@dataclass(frozen=True)
class MatrixParam(Param):
    """Appended to the path as ``;name=value``."""

    destination: Destination | str | None = field(default=Destination.MATRIX, init=False)


@dataclass(frozen=True)
class FormParam(Param):
    """Sent in an ``application/x-www-form-urlencoded`` body."""

    destination: Destination | str | None = field(default=Destination.FORM, init=False)


@dataclass(frozen=True)
class MultiPartParam(Param):
    """Sent as one part of a ``multipart/form-data`` body."""

    destination: Destination | str | None = field(default=Destination.MULTIPART, init=False)


@dataclass(frozen=True)
class Body(Param):
    """The argument is serialized as the whole request body."""

    destination: Destination | str | None = field(default=Destination.BODY, init=False)


def rest_param(**facets: Any) -> Callable[[type[T]], type[T]]:
    """Declare parameter facets on a type.

    Every parameter annotated with the decorated type picks these facets up
    unless its own ``Annotated`` marker sets them::

        @rest_param(destination="header", name="X-Api-Key")
        class ApiKey(str): ...
    """
    marker = Param(**facets)

    def decorator(cls: type[T]) -> type[T]:
        cls.__restfly_param__ = marker  # type: ignore[attr-defined]
        return cls

    return decorator
