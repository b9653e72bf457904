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
"""Entity writers — serialize the request body onto an output stream."""

from __future__ import annotations

import abc
import io
import secrets
from collections.abc import Sequence
from typing import Any, BinaryIO
from urllib.parse import urlencode

from restfly.client.http import MultipartField, Pair
from restfly.client.serializers import Serializer


class EntityWriter(abc.ABC):
    """Writes a request entity. ``content_length`` is -1 when unknown."""

    @property
    @abc.abstractmethod
    def content_type(self) -> str: ...

    @property
    def content_length(self) -> int:
        return -1

    @abc.abstractmethod
    def write_to(self, out: BinaryIO) -> None: ...

    def with_content_type(self, content_type: str) -> EntityWriter:
        return ContentTypeOverride(self, content_type)

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.write_to(buffer)
        return buffer.getvalue()


class ContentTypeOverride(EntityWriter):
    """Writes the delegate's bytes under a different content type."""

    def __init__(self, delegate: EntityWriter, content_type: str) -> None:
        self._delegate = delegate
        self._content_type = content_type

    @property
    def content_type(self) -> str:
        return self._content_type

    @property
    def content_length(self) -> int:
        return self._delegate.content_length

    def write_to(self, out: BinaryIO) -> None:
        self._delegate.write_to(out)


class FormEntityWriter(EntityWriter):
    """``application/x-www-form-urlencoded`` body."""

    def __init__(self, params: Sequence[Pair], charset: str = "utf-8") -> None:
        self._params = list(params)
        self._charset = charset

    @property
    def content_type(self) -> str:
        return f"application/x-www-form-urlencoded; charset={self._charset}"

    def write_to(self, out: BinaryIO) -> None:
        out.write(urlencode(self._params, encoding=self._charset).encode("ascii"))


class MultipartEntityWriter(EntityWriter):
    """``multipart/form-data`` body. Plain form params become ``text/plain`` parts."""

    def __init__(
        self,
        fields: Sequence[MultipartField],
        form_params: Sequence[Pair] = (),
        charset: str = "utf-8",
        boundary: str | None = None,
    ) -> None:
        self._charset = charset
        self._boundary = boundary or secrets.token_hex(16)
        text_type = f"text/plain; charset={charset}"
        self._fields = [
            *(MultipartField(p.name, p.value.encode(charset), text_type) for p in form_params),
            *fields,
        ]

    @property
    def boundary(self) -> str:
        return self._boundary

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self._boundary}"

    def with_content_type(self, content_type: str) -> EntityWriter:
        # The boundary is part of the content type.
        return self

    def write_to(self, out: BinaryIO) -> None:
        delimiter = f"--{self._boundary}\r\n".encode("ascii")
        for field in self._fields:
            disposition = f'Content-Disposition: form-data; name="{field.name}"'
            if field.filename:
                disposition += f'; filename="{field.filename}"'
            out.write(delimiter)
            out.write(f"{disposition}\r\nContent-Type: {field.content_type}\r\n\r\n".encode(self._charset))
            out.write(field.data)
            out.write(b"\r\n")
        out.write(f"--{self._boundary}--\r\n".encode("ascii"))


class SerializingEntityWriter(EntityWriter):
    """Body produced by a single value's serializer."""

    def __init__(self, value: Any, serializer: Serializer, charset: str = "utf-8") -> None:
        self._value = value
        self._serializer = serializer
        self._charset = charset

    @property
    def content_type(self) -> str:
        return self._serializer.content_type

    def write_to(self, out: BinaryIO) -> None:
        self._serializer.serialize(self._value, self._charset, out)
