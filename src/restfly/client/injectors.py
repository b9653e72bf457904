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
"""Parameter injectors — write one argument into the request at its destination."""

from __future__ import annotations

import io
from collections.abc import Awaitable, Iterable
from typing import Any, Protocol, runtime_checkable

from restfly.client.config.model import Destination
from restfly.client.context import ParamContext
from restfly.client.http import HttpRequestBuilder, MultipartField
from restfly.client.serializers import serialize_to_text
from restfly.kernel.exceptions import RequestBuildError


@runtime_checkable
class Injector(Protocol):
    """Returns *builder* with the parameter of *context* written into it.

    An injector only touches its own parameter; it must not depend on what
    other parameters' injectors did.
    """

    def inject(
        self, builder: HttpRequestBuilder, context: ParamContext
    ) -> HttpRequestBuilder | Awaitable[HttpRequestBuilder]: ...


def _is_multi(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


class DefaultInjector:
    """Serializes the argument and adds it to the part named by its destination.

    ``None`` arguments are skipped, except for URL placeholders which are
    mandatory. Sequence arguments produce one entry per element for query,
    header, cookie, matrix, form and multipart destinations.
    """

    def inject(self, builder: HttpRequestBuilder, context: ParamContext) -> HttpRequestBuilder:
        value = context.value
        destination = context.destination

        if value is None:
            if destination is Destination.URL:
                raise RequestBuildError(
                    f"URL parameter '{context.name}' cannot be None",
                    code="NULL_PATH_PARAM",
                    context={"param": context.name},
                )
            return builder

        if destination is Destination.BODY:
            return builder.with_body(value, context.config.serializer)

        values: Iterable[Any] = value if _is_multi(value) and destination is not Destination.URL else (value,)
        for item in values:
            builder = self._inject_one(builder, context, item)
        return builder

    def _inject_one(self, builder: HttpRequestBuilder, context: ParamContext, item: Any) -> HttpRequestBuilder:
        name = context.name
        serializer = context.config.serializer
        destination = context.destination

        if destination is Destination.MULTIPART:
            buffer = io.BytesIO()
            serializer.serialize(item, context.charset, buffer)
            content_type = serializer.content_type
            if content_type.startswith("text/") and "charset" not in content_type:
                content_type = f"{content_type}; charset={context.charset}"
            filename = getattr(item, "name", None) if hasattr(item, "read") else None
            return builder.add_multipart(
                MultipartField(name, buffer.getvalue(), content_type, filename and str(filename))
            )

        text = serialize_to_text(serializer, item, context.charset)
        if destination is Destination.URL:
            return builder.add_path_param(name, text)
        if destination is Destination.QUERY:
            return builder.add_query_param(name, text)
        if destination is Destination.HEADER:
            return builder.add_header(name, text)
        if destination is Destination.COOKIE:
            return builder.add_cookie(name, text)
        if destination is Destination.MATRIX:
            return builder.add_matrix_param(name, text)
        if destination is Destination.FORM:
            return builder.add_form_param(name, text)
        raise RequestBuildError(f"Unsupported destination {destination!r}")
