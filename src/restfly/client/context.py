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
"""Per-call carriers binding one invocation's arguments to its configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from restfly.client.config.model import (
    Destination,
    InterfaceConfig,
    MethodConfig,
    ParamConfig,
)

if TYPE_CHECKING:
    from restfly.client.http import HttpResponse


@dataclass(frozen=True)
class RequestContext:
    """Snapshot of one invocation. Never shared across calls."""

    interface_config: InterfaceConfig
    method_config: MethodConfig
    args: tuple[Any, ...]

    @property
    def charset(self) -> str:
        return self.interface_config.encoding

    def value(self, index: int) -> Any:
        return self.args[index]

    def param_context(self, index: int) -> ParamContext:
        return ParamContext(self, index)


@dataclass(frozen=True)
class ParamContext:
    """A RequestContext narrowed to one parameter."""

    request_context: RequestContext
    index: int

    @property
    def config(self) -> ParamConfig:
        return self.request_context.method_config.param(self.index)

    @property
    def value(self) -> Any:
        """The argument, or the configured default when the argument is ``None``."""
        value = self.request_context.value(self.index)
        return self.config.default if value is None else value

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def destination(self) -> Destination:
        return self.config.destination

    @property
    def charset(self) -> str:
        return self.request_context.charset


@dataclass(frozen=True)
class ResponseContext:
    """Outcome of one attempt.

    ``response`` is ``None`` when the transport failed before a response
    arrived; ``exception`` is set when the attempt failed.
    """

    request_context: RequestContext
    response: HttpResponse | None = None
    exception: BaseException | None = None

    @property
    def method_config(self) -> MethodConfig:
        return self.request_context.method_config

    @property
    def return_type(self) -> Any:
        return self.request_context.method_config.return_type
