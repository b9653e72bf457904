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
"""Client subsystem configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from restfly.core.config import config_properties


@config_properties(prefix="restfly.client")
@dataclass
class ClientProperties:
    """Global facet defaults for every client interface (restfly.client.*).

    These sit below interface-level configuration and above the hard-coded
    defaults. Timeouts are seconds; ``None`` means no timeout.
    """

    encoding: str = "utf-8"
    http_method: str = "GET"
    socket_timeout: float | str | None = None
    connection_timeout: float | str | None = None

    def as_facets(self) -> dict[str, object]:
        """Return the non-empty values keyed by facet name."""
        facets = {
            "encoding": self.encoding,
            "http_method": self.http_method,
            "socket_timeout": self.socket_timeout,
            "connection_timeout": self.connection_timeout,
        }
        return {k: v for k, v in facets.items() if v not in (None, "")}
