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
"""Tests for parameter serializers and default serializer selection."""

from __future__ import annotations

import datetime
import enum
import io

import pytest

from restfly.client.config.model import Destination
from restfly.client.serializers import (
    BytesSerializer,
    JsonSerializer,
    ToStringSerializer,
    default_serializer_for,
    serialize_to_text,
)


class Colour(enum.Enum):
    RED = "red"


class TestToStringSerializer:
    @pytest.mark.parametrize(
        ("value", "text"),
        [
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (Colour.RED, "red"),
            (datetime.date(2026, 1, 31), "2026-01-31"),
            (b"raw", "raw"),
        ],
    )
    def test_text(self, value, text):
        assert serialize_to_text(ToStringSerializer(), value, "utf-8") == text

    def test_charset(self):
        out = io.BytesIO()
        ToStringSerializer().serialize("é", "iso-8859-1", out)
        assert out.getvalue() == b"\xe9"


class TestJsonSerializer:
    def test_compact_output(self):
        assert serialize_to_text(JsonSerializer(), {"a": [1, None]}, "utf-8") == '{"a":[1,null]}'


class TestBytesSerializer:
    def test_stream_is_copied_and_closed(self):
        stream = io.BytesIO(b"payload")
        out = io.BytesIO()
        BytesSerializer().serialize(stream, "utf-8", out)
        assert out.getvalue() == b"payload"
        assert stream.closed

    def test_rejects_other_values(self):
        with pytest.raises(TypeError):
            BytesSerializer().serialize(3, "utf-8", io.BytesIO())


class TestDefaultSerializer:
    @pytest.mark.parametrize(
        ("destination", "value_type", "expected"),
        [
            (Destination.QUERY, dict, ToStringSerializer),
            (Destination.BODY, dict, JsonSerializer),
            (Destination.BODY, bytes, BytesSerializer),
            (Destination.MULTIPART, io.BytesIO, BytesSerializer),
            (Destination.MULTIPART, str, ToStringSerializer),
            (Destination.MULTIPART, list, JsonSerializer),
        ],
    )
    def test_selection(self, destination, value_type, expected):
        assert isinstance(default_serializer_for(destination, value_type), expected)
