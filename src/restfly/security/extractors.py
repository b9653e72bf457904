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
"""Entity parameter extractors — recover signable parameters from a request body."""

from __future__ import annotations

import email.policy
from email.parser import BytesParser
from typing import Protocol, runtime_checkable
from urllib.parse import parse_qsl

from restfly.client.http import Pair

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART_FORM_DATA = "multipart/form-data"


@runtime_checkable
class EntityParamExtractor(Protocol):
    """Parses the serialized entity back into name/value parameters.

    *content_type* is the full header value, including parameters such as
    ``boundary``.
    """

    def extract(self, content_type: str, charset: str, data: bytes) -> list[Pair]: ...


class FormUrlEncodedExtractor:
    def extract(self, content_type: str, charset: str, data: bytes) -> list[Pair]:
        text = data.decode("ascii", errors="replace")
        return [Pair(k, v) for k, v in parse_qsl(text, keep_blank_values=True, encoding=charset)]


class MultipartExtractor:
    """Only ``text/plain`` parts are parameters; files and other parts are skipped."""

    def extract(self, content_type: str, charset: str, data: bytes) -> list[Pair]:
        header = f"Content-Type: {content_type}\r\n\r\n".encode("ascii")
        message = BytesParser(policy=email.policy.HTTP).parsebytes(header + data)
        if not message.is_multipart():
            return []

        pairs: list[Pair] = []
        for part in message.iter_parts():
            if part.get_content_type() != "text/plain":
                continue
            name = part.get_param("name", header="content-disposition")
            if name is None:
                continue
            payload = part.get_payload(decode=True) or b""
            pairs.append(Pair(str(name), payload.decode(part.get_content_charset() or charset)))
        return pairs


def default_extractors() -> dict[str, EntityParamExtractor]:
    """Extractors for url-encoded forms and multipart bodies, keyed by short content type."""
    return {
        FORM_URLENCODED: FormUrlEncodedExtractor(),
        MULTIPART_FORM_DATA: MultipartExtractor(),
    }
