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
"""Parameter serializers — turn argument values into request bytes."""

from __future__ import annotations

import datetime
import enum
import io
import shutil
from typing import Any, BinaryIO, Protocol, runtime_checkable

import pydantic_core

from restfly.client.config.model import Destination

ALL_DESTINATIONS = frozenset(Destination)
ENTITY_DESTINATIONS = frozenset({Destination.BODY, Destination.MULTIPART})


@runtime_checkable
class Serializer(Protocol):
    """Writes *value* to *out* using *charset* for any text it produces.

    ``destinations`` lists the request parts the serializer can feed; the
    config resolver rejects a parameter whose destination is not listed.
    """

    content_type: str
    destinations: frozenset[Destination]

    def serialize(self, value: Any, charset: str, out: BinaryIO) -> None: ...


class ToStringSerializer:
    """Plain text rendering: ``str(value)`` with lowercase booleans and ISO dates."""

    content_type = "text/plain"
    destinations = ALL_DESTINATIONS

    def serialize(self, value: Any, charset: str, out: BinaryIO) -> None:
        out.write(self.to_text(value).encode(charset))

    @staticmethod
    def to_text(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, enum.Enum):
            return str(value.value)
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        if isinstance(value, bytes):
            return value.decode()
        return str(value)


class JsonSerializer:
    """JSON rendering through pydantic-core (models, dataclasses, dicts, lists)."""

    content_type = "application/json"
    destinations = ALL_DESTINATIONS

    def serialize(self, value: Any, charset: str, out: BinaryIO) -> None:
        data = pydantic_core.to_json(value)
        if charset.lower().replace("-", "") != "utf8":
            data = data.decode("utf-8").encode(charset)
        out.write(data)


class BytesSerializer:
    """Raw bytes passthrough: ``bytes``, ``str`` or a readable binary stream."""

    content_type = "application/octet-stream"
    destinations = ENTITY_DESTINATIONS

    def serialize(self, value: Any, charset: str, out: BinaryIO) -> None:
        if isinstance(value, (bytes, bytearray, memoryview)):
            out.write(bytes(value))
        elif isinstance(value, str):
            out.write(value.encode(charset))
        elif hasattr(value, "read"):
            try:
                shutil.copyfileobj(value, out)
            finally:
                value.close()
        else:
            raise TypeError(f"Cannot write {type(value).__name__} as raw bytes")


def serialize_to_text(serializer: Serializer, value: Any, charset: str) -> str:
    """Run *serializer* into memory and decode the result with *charset*."""
    buffer = io.BytesIO()
    serializer.serialize(value, charset, buffer)
    return buffer.getvalue().decode(charset)


def default_serializer_for(destination: Destination, value_type: Any) -> Serializer:
    """Pick the serializer used when none is configured at any level."""
    if destination in ENTITY_DESTINATIONS:
        if isinstance(value_type, type) and (
            issubclass(value_type, (bytes, bytearray, memoryview)) or issubclass(value_type, io.IOBase)
        ):
            return BytesSerializer()
        if destination is Destination.MULTIPART and value_type in (str, int, float, bool):
            return ToStringSerializer()
        return JsonSerializer()
    return ToStringSerializer()
