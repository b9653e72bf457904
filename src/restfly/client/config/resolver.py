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
"""Config resolver — merges configuration sources into an InterfaceConfig.

Precedence per facet, highest first::

    param > method > interface > global > hard-coded default

Within one level the sources are consulted in the order given and the
first one that sets the facet wins outright. A lower-precedence source is
only consulted for a level after every higher one was found empty there,
and a more specific level always beats a less specific one regardless of
which source set it.
"""

from __future__ import annotations

import importlib
import logging
from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import Any

from restfly.client.config.model import (
    Destination,
    InterfaceConfig,
    MethodConfig,
    ParamConfig,
)
from restfly.client.config.sources import (
    ConfigSource,
    DeclarativeConfigSource,
    DeclaredMethod,
    DeclaredParam,
    introspect,
)
from restfly.client.deserializers import DeserializerRegistry
from restfly.client.handlers import DefaultResponseHandler, RethrowErrorHandler
from restfly.client.injectors import DefaultInjector
from restfly.client.interceptors import RequestInterceptor
from restfly.client.retry import NeverRetry
from restfly.client.serializers import default_serializer_for
from restfly.kernel.exceptions import ConfigResolutionError

logger = logging.getLogger(__name__)

Levels = Sequence[Sequence[Mapping[str, Any]]]


def lookup(facet: str, levels: Levels, default: Any = None) -> Any:
    """Return *facet* from the first level, and within it the first source, that sets it.

    ``None`` and blank strings count as unset.
    """
    for level in levels:
        for facets in level:
            value = facets.get(facet)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            return value
    return default


def import_component(path: str) -> Any:
    """Import ``pkg.mod.Name`` or ``pkg.mod:Name``."""
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ImportError(f"'{path}' is not a module path")
    target: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        target = getattr(target, part)
    return target


def parse_timeout(value: Any) -> float | None:
    """Seconds as a float; ``None``, ``""`` and ``"none"`` mean no timeout."""
    if value is None:
        return None
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, bool):
        raise ValueError(f"Invalid timeout {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text == "" or text.lower() == "none":
        return None
    return float(text)


class ConfigResolver:
    """Builds ``InterfaceConfig`` objects from an ordered list of sources.

    Args:
        sources: Configuration sources, highest precedence first. Defaults
            to declarative metadata only.
        defaults: Global facet defaults consulted after every source's
            global level (typically ``ClientProperties.as_facets()``).
        deserializers: Registry used by the default response handler.
    """

    def __init__(
        self,
        sources: Sequence[ConfigSource] | None = None,
        defaults: Mapping[str, Any] | None = None,
        deserializers: DeserializerRegistry | None = None,
    ) -> None:
        self._sources = list(sources) if sources is not None else [DeclarativeConfigSource()]
        self._defaults = dict(defaults or {})
        self._components: dict[Any, Any] = {}
        self._no_op_interceptor = RequestInterceptor()
        self._response_handler = DefaultResponseHandler(deserializers)
        self._error_handler = RethrowErrorHandler()
        self._retry_handler = NeverRetry()
        self._injector = DefaultInjector()

    @property
    def sources(self) -> list[ConfigSource]:
        return list(self._sources)

    def resolve(self, cls: type) -> InterfaceConfig:
        """Resolve the complete configuration of client class *cls*.

        Raises:
            ConfigResolutionError: no end-point is configured, a method
                signature cannot be used, or a configured value is invalid.
        """
        global_level = [s.global_facets() for s in self._sources] + [self._defaults]
        interface_level = [s.interface_facets(cls) for s in self._sources]
        levels: Levels = [interface_level, global_level]
        where = cls.__qualname__

        end_point = lookup("end_point", levels)
        if not end_point:
            raise ConfigResolutionError(
                f"No end-point configured for {where}",
                code="MISSING_END_POINT",
                context={"interface": where},
            )

        methods = tuple(self._resolve_method(cls, m, levels) for m in introspect(cls))
        config = InterfaceConfig(
            interface=cls,
            end_point=str(end_point),
            context_path=str(lookup("context_path", levels, "")),
            encoding=str(lookup("encoding", levels, "utf-8")),
            global_interceptor=self._component(
                lookup("global_interceptor", levels), self._no_op_interceptor, where, "global_interceptor"
            ),
            methods=methods,
        )
        logger.debug("Resolved %s: %s with %d method(s)", where, config.end_point, len(methods))
        return config

    def _resolve_method(self, cls: type, method: DeclaredMethod, outer: Levels) -> MethodConfig:
        levels: Levels = [[s.method_facets(cls, method) for s in self._sources], *outer]
        where = f"{cls.__qualname__}.{method.name}"

        def component(facet: str, default: Any) -> Any:
            return self._component(lookup(facet, levels), default, where, facet)

        try:
            socket_timeout = parse_timeout(lookup("socket_timeout", levels))
            connection_timeout = parse_timeout(lookup("connection_timeout", levels))
        except ValueError as exc:
            raise ConfigResolutionError(
                f"Invalid timeout for {where}: {exc}",
                code="INVALID_VALUE",
                context={"method": where},
            ) from exc

        produces = lookup("produces", levels)
        consumes = lookup("consumes", levels)
        return MethodConfig(
            name=method.name,
            signature=method.signature,
            http_method=str(lookup("http_method", levels, "GET")).upper(),
            path=str(lookup("path", levels, "")),
            socket_timeout=socket_timeout,
            connection_timeout=connection_timeout,
            request_interceptor=component("request_interceptor", self._no_op_interceptor),
            response_handler=component("response_handler", self._response_handler),
            error_handler=component("error_handler", self._error_handler),
            retry_handler=component("retry_handler", self._retry_handler),
            return_type=method.return_type,
            produces=str(produces) if produces else None,
            consumes=str(consumes) if consumes else None,
            params=tuple(self._resolve_param(cls, method, p, levels) for p in method.params),
        )

    def _resolve_param(
        self, cls: type, method: DeclaredMethod, param: DeclaredParam, outer: Levels
    ) -> ParamConfig:
        levels: Levels = [[s.param_facets(cls, method, param) for s in self._sources], *outer]
        where = f"{cls.__qualname__}.{method.name}({param.name})"

        try:
            destination = Destination.parse(lookup("destination", levels, Destination.QUERY))
        except ValueError as exc:
            raise ConfigResolutionError(str(exc), code="INVALID_VALUE", context={"param": where}) from exc

        serializer = self._component(
            lookup("serializer", levels), None, where, "serializer"
        ) or default_serializer_for(destination, param.annotation)
        if destination not in serializer.destinations:
            raise ConfigResolutionError(
                f"{type(serializer).__name__} cannot write to {destination.name} (parameter {where})",
                code="UNSUPPORTED_DESTINATION",
                context={"param": where, "destination": destination.name},
            )

        return ParamConfig(
            index=param.index,
            name=str(lookup("name", levels, param.name)),
            destination=destination,
            serializer=serializer,
            injector=self._component(lookup("injector", levels), self._injector, where, "injector"),
            default=lookup("default", levels),
        )

    def _component(self, value: Any, default: Any, where: str, facet: str) -> Any:
        """Turn a configured component into an instance.

        Strings are import paths; classes are instantiated with no
        arguments. Instances are shared across every method that names
        the same string or class.
        """
        if value is None:
            return default
        if not isinstance(value, (str, type)):
            return value
        cached = self._components.get(value)
        if cached is not None:
            return cached
        try:
            target = import_component(value) if isinstance(value, str) else value
            instance = target() if isinstance(target, type) else target
        except Exception as exc:
            raise ConfigResolutionError(
                f"Cannot create {facet} '{value}' for {where}: {exc}",
                code="INVALID_COMPONENT",
                context={"facet": facet, "value": str(value)},
            ) from exc
        self._components[value] = instance
        return instance
