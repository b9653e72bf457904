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
"""Configuration sources — where facets come from before they are resolved.

A source answers "which facets do you set at this level?" for the global,
interface, method and parameter levels. It never falls back to another
level; that is the resolver's job.
"""

from __future__ import annotations

import inspect
import re
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Annotated, Any, Protocol, Union, get_args, get_origin, runtime_checkable

from restfly.client.config.model import (
    INTERFACE_FACETS,
    METHOD_FACETS,
    PARAM_FACETS,
    MethodSignature,
)
from restfly.client.params import Param
from restfly.kernel.exceptions import ConfigResolutionError

_EMPTY: Mapping[str, Any] = types.MappingProxyType({})


# =============================================================================
# Introspection of declared client methods
# =============================================================================


@dataclass(frozen=True)
class DeclaredParam:
    """One parameter of a client method as written in the class."""

    index: int
    name: str
    annotation: Any
    facets: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DeclaredMethod:
    """One ``@get``/``@post``/... method of a client class."""

    name: str
    function: Any
    signature: MethodSignature
    params: tuple[DeclaredParam, ...]
    return_type: Any
    facets: Mapping[str, Any] = field(default_factory=dict)


def erased_name(tp: Any) -> str:
    """Name of *tp* with generics and ``Optional`` stripped: ``list[int]`` -> ``list``."""
    if tp is inspect.Parameter.empty or tp is Any:
        return "object"
    origin = get_origin(tp)
    if origin is Annotated:
        return erased_name(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        members = [a for a in get_args(tp) if a is not type(None)]
        return erased_name(members[0]) if len(members) == 1 else "object"
    target = origin if origin is not None else tp
    if isinstance(target, type):
        return target.__name__
    return "object"


def _split_annotation(hint: Any) -> tuple[Any, dict[str, Any]]:
    """Split ``Annotated[T, markers...]`` into ``T`` and the parameter-level facets."""
    facets: dict[str, Any] = {}
    base = hint
    markers: list[Param] = []
    if get_origin(hint) is Annotated:
        base, *metadata = get_args(hint)
        markers = [m for m in metadata if isinstance(m, Param)]

    type_marker = getattr(base, "__restfly_param__", None) if isinstance(base, type) else None
    if isinstance(type_marker, Param):
        facets.update(type_marker.facets())
    for marker in markers:
        facets.update(marker.facets())
    return base, facets


def _declared_endpoints(cls: type) -> list[tuple[str, Any]]:
    """``(name, function)`` of every endpoint, in declaration order, base classes first."""
    found: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if getattr(attr, "__restfly_endpoint__", False):
                found[name] = None
    for name in list(found):
        attr = getattr(cls, name, None)
        if getattr(attr, "__restfly_endpoint__", False):
            found[name] = attr
        else:
            del found[name]
    return list(found.items())


def introspect(cls: type) -> list[DeclaredMethod]:
    """Read the client methods declared on *cls*.

    Raises:
        ConfigResolutionError: a method takes ``*args``/``**kwargs`` or its
            annotations cannot be evaluated.
    """
    methods: list[DeclaredMethod] = []
    for name, func in _declared_endpoints(cls):
        qualname = f"{cls.__qualname__}.{name}"
        try:
            hints = typing.get_type_hints(func, include_extras=True)
        except Exception as exc:
            raise ConfigResolutionError(
                f"Cannot evaluate the annotations of {qualname}: {exc}",
                code="UNRESOLVABLE_ANNOTATION",
                context={"method": qualname},
            ) from exc

        parameters = list(inspect.signature(func).parameters.values())[1:]
        params: list[DeclaredParam] = []
        for index, parameter in enumerate(parameters):
            if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                raise ConfigResolutionError(
                    f"{qualname} cannot declare *args or **kwargs",
                    code="VARIADIC_SIGNATURE",
                    context={"method": qualname, "param": parameter.name},
                )
            base, facets = _split_annotation(hints.get(parameter.name, inspect.Parameter.empty))
            params.append(DeclaredParam(index, parameter.name, base, facets))

        methods.append(
            DeclaredMethod(
                name=name,
                function=func,
                signature=MethodSignature(name, tuple(erased_name(p.annotation) for p in params)),
                params=tuple(params),
                return_type=hints.get("return", Any),
                facets=dict(getattr(func, "__restfly_method_facets__", {})),
            )
        )
    return methods


# =============================================================================
# Source contract
# =============================================================================


@runtime_checkable
class ConfigSource(Protocol):
    """Facets one source sets at each level. Empty mappings mean "nothing here"."""

    def global_facets(self) -> Mapping[str, Any]: ...

    def interface_facets(self, cls: type) -> Mapping[str, Any]: ...

    def method_facets(self, cls: type, method: DeclaredMethod) -> Mapping[str, Any]: ...

    def param_facets(self, cls: type, method: DeclaredMethod, param: DeclaredParam) -> Mapping[str, Any]: ...


class DeclarativeConfigSource:
    """Facets recorded by ``@rest_client``, the verb/facet decorators and ``Annotated`` markers."""

    def global_facets(self) -> Mapping[str, Any]:
        return _EMPTY

    def interface_facets(self, cls: type) -> Mapping[str, Any]:
        return getattr(cls, "__restfly_facets__", _EMPTY)

    def method_facets(self, cls: type, method: DeclaredMethod) -> Mapping[str, Any]:
        return method.facets

    def param_facets(self, cls: type, method: DeclaredMethod, param: DeclaredParam) -> Mapping[str, Any]:
        return param.facets


# =============================================================================
# Key-value source
# =============================================================================

_FACET_KEYS = {facet.replace("_", "-"): facet for facet in INTERFACE_FACETS + METHOD_FACETS + PARAM_FACETS}
_METHOD_KEYS = {facet.replace("_", "-"): facet for facet in METHOD_FACETS + PARAM_FACETS}
_PARAM_KEYS = {facet.replace("_", "-"): facet for facet in PARAM_FACETS}


@dataclass
class _MethodEntry:
    alias: str
    pattern: re.Pattern[str] | None = None
    facets: dict[str, str] = field(default_factory=dict)
    params: dict[int, dict[str, str]] = field(default_factory=dict)


@dataclass
class _ServiceEntry:
    alias: str
    class_name: str | None = None
    facets: dict[str, str] = field(default_factory=dict)
    methods: dict[str, _MethodEntry] = field(default_factory=dict)


class PropertiesConfigSource:
    """Facets from a flat key-value map using the ``service.*`` key grammar.

    ::

        service.end-point=https://fallback.example.com
        service.items.class=myapp.clients.ItemsApi
        service.items.end-point=https://items.example.com
        service.items.socket-timeout=5
        service.items.method.lookup.pattern=get_item\\(int\\)
        service.items.method.lookup.path=/items/{id}
        service.items.method.lookup.params.0.name=id
        service.items.method.lookup.params.0.destination=url

    ``pattern`` is a regex matched against the whole signature
    ``name(type,type)``. Patterns are tried in key order and the first match
    wins; without a ``pattern`` the method alias matches by method name.
    Values are kept as strings and coerced by the resolver.

    Raises:
        ConfigResolutionError: on keys outside the grammar or invalid patterns.
    """

    def __init__(self, properties: Mapping[str, Any], prefix: str = "service") -> None:
        self._prefix = prefix
        self._globals: dict[str, str] = {}
        self._services: dict[str, _ServiceEntry] = {}
        for key, value in properties.items():
            if key == prefix or key.startswith(prefix + "."):
                self._add(key, key.split(".")[1:], value)

    def _add(self, key: str, parts: list[str], value: Any) -> None:
        if len(parts) == 1 and parts[0] in _FACET_KEYS:
            self._globals[_FACET_KEYS[parts[0]]] = value
            return
        if len(parts) < 2:
            raise _bad_key(key)

        alias, rest = parts[0], parts[1:]
        service = self._services.setdefault(alias, _ServiceEntry(alias))
        if rest == ["class"]:
            service.class_name = str(value)
        elif len(rest) == 1 and rest[0] in _FACET_KEYS:
            service.facets[_FACET_KEYS[rest[0]]] = value
        elif len(rest) >= 3 and rest[0] == "method":
            self._add_method(key, service, rest[1], rest[2:], value)
        else:
            raise _bad_key(key)

    def _add_method(self, key: str, service: _ServiceEntry, method_alias: str, rest: list[str], value: Any) -> None:
        entry = service.methods.setdefault(method_alias, _MethodEntry(method_alias))
        if rest == ["pattern"]:
            try:
                entry.pattern = re.compile(str(value))
            except re.error as exc:
                raise ConfigResolutionError(
                    f"Invalid method pattern for '{key}': {exc}",
                    code="INVALID_PATTERN",
                    context={"key": key},
                ) from exc
        elif len(rest) == 1 and rest[0] in _METHOD_KEYS:
            entry.facets[_METHOD_KEYS[rest[0]]] = value
        elif len(rest) == 3 and rest[0] == "params" and rest[1].isdigit() and rest[2] in _PARAM_KEYS:
            entry.params.setdefault(int(rest[1]), {})[_PARAM_KEYS[rest[2]]] = value
        else:
            raise _bad_key(key)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _service_for(self, cls: type) -> _ServiceEntry | None:
        alias = getattr(cls, "__restfly_alias__", None)
        if alias:
            return self._services.get(alias)
        names = {f"{cls.__module__}.{cls.__qualname__}", f"{cls.__module__}:{cls.__qualname__}"}
        for service in self._services.values():
            if service.class_name in names:
                return service
        return None

    def _method_for(self, cls: type, method: DeclaredMethod) -> _MethodEntry | None:
        service = self._service_for(cls)
        if service is None:
            return None
        rendered = str(method.signature)
        for entry in service.methods.values():
            if entry.pattern is not None:
                if entry.pattern.fullmatch(rendered):
                    return entry
            elif entry.alias == method.name:
                return entry
        return None

    def global_facets(self) -> Mapping[str, Any]:
        return self._globals

    def interface_facets(self, cls: type) -> Mapping[str, Any]:
        service = self._service_for(cls)
        return service.facets if service is not None else _EMPTY

    def method_facets(self, cls: type, method: DeclaredMethod) -> Mapping[str, Any]:
        entry = self._method_for(cls, method)
        return entry.facets if entry is not None else _EMPTY

    def param_facets(self, cls: type, method: DeclaredMethod, param: DeclaredParam) -> Mapping[str, Any]:
        entry = self._method_for(cls, method)
        if entry is None:
            return _EMPTY
        return entry.params.get(param.index, _EMPTY)

    def __repr__(self) -> str:
        return f"PropertiesConfigSource(prefix={self._prefix!r}, services={sorted(self._services)})"


def _bad_key(key: str) -> ConfigResolutionError:
    return ConfigResolutionError(
        f"Unrecognised client configuration key '{key}'",
        code="UNKNOWN_KEY",
        context={"key": key},
    )
