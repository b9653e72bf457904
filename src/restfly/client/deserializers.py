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
"""Response deserializers, selected by content type."""

from __future__ import annotations

import threading
from typing import Any, Protocol, runtime_checkable

import pydantic_core
from pydantic import TypeAdapter


@runtime_checkable
class Deserializer(Protocol):
    def deserialize(self, data: bytes, charset: str, target: Any) -> Any: ...


class _AdapterCache:
    """TypeAdapter per target type; building one is the expensive part of validation."""

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}
        self._lock = threading.Lock()

    def get(self, target: Any) -> TypeAdapter[Any]:
        try:
            return self._adapters[target]
        except KeyError:
            pass
        except TypeError:
            return TypeAdapter(target)
        with self._lock:
            adapter = self._adapters.get(target)
            if adapter is None:
                adapter = TypeAdapter(target)
                self._adapters[target] = adapter
            return adapter


_adapters = _AdapterCache()


def _untyped(target: Any) -> bool:
    return target is Any or target is object


class JsonDeserializer:
    """JSON body validated into the declared return type with pydantic."""

    def deserialize(self, data: bytes, charset: str, target: Any) -> Any:
        if charset.lower().replace("-", "") != "utf8":
            data = data.decode(charset).encode("utf-8")
        if _untyped(target):
            return pydantic_core.from_json(data)
        return _adapters.get(target).validate_json(data)


class TextDeserializer:
    """``text/*`` body: returned as ``str`` or coerced into a scalar type."""

    def deserialize(self, data: bytes, charset: str, target: Any) -> Any:
        text = data.decode(charset)
        if _untyped(target) or target is str:
            return text
        if target is bytes:
            return data
        return _adapters.get(target).validate_python(text.strip())


class BytesDeserializer:
    def deserialize(self, data: bytes, charset: str, target: Any) -> Any:
        if target is str:
            return data.decode(charset)
        return data


class DeserializerRegistry:
    """Maps short content types to deserializers.

    Lookup tries the exact type, then a structured-syntax suffix
    (``application/problem+json`` -> ``application/json``), then the
    ``type/*`` wildcard.
    """

    def __init__(self, deserializers: dict[str, Deserializer] | None = None) -> None:
        if deserializers is None:
            deserializers = {
                "application/json": JsonDeserializer(),
                "text/*": TextDeserializer(),
                "application/octet-stream": BytesDeserializer(),
            }
        self._deserializers = dict(deserializers)

    def register(self, content_type: str, deserializer: Deserializer) -> None:
        self._deserializers[content_type.lower()] = deserializer

    def find(self, content_type: str | None) -> Deserializer | None:
        if not content_type:
            return None
        content_type = content_type.lower()
        if content_type in self._deserializers:
            return self._deserializers[content_type]
        major, _, minor = content_type.partition("/")
        if "+" in minor:
            suffix = minor.rsplit("+", 1)[1]
            found = self._deserializers.get(f"application/{suffix}")
            if found is not None:
                return found
        return self._deserializers.get(f"{major}/*")
