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
"""Unified exception hierarchy for restfly.

All library exceptions inherit from RestflyException, so callers can catch
one type for every failure the client surfaces.

Categories:
- ConfigResolutionError: client configuration cannot be resolved (fatal)
- TransportError: the HTTP exchange failed or returned a non-2xx status
- CallFailedError: a call ended in failure after retries were exhausted
- RequestBuildError: the request could not be assembled from its parameters
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from restfly.client.http import HttpResponse


# =============================================================================
# Base Exception
# =============================================================================


class RestflyException(Exception):
    """Base exception for all restfly errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "TRANSPORT_503").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration
# =============================================================================


class ConfigResolutionError(RestflyException):
    """Client configuration could not be resolved. Aborts client creation."""


# =============================================================================
# Request / Transport
# =============================================================================


class RequestBuildError(RestflyException):
    """The request could not be finalized from the injected parameters."""


class TransportError(RestflyException):
    """The HTTP exchange failed.

    Carries the response when one was obtained (e.g. a non-2xx status), so
    retry and error handlers can inspect it. ``response`` is ``None`` when
    the failure happened before any response arrived.
    """

    def __init__(
        self,
        message: str,
        response: HttpResponse | None = None,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.response = response

    @property
    def status_code(self) -> int | None:
        return self.response.status_code if self.response is not None else None


# =============================================================================
# Call outcome
# =============================================================================


class CallFailedError(RestflyException):
    """A client call failed and no error handler produced a fallback."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message, code=code, context=context)
        self.cause = cause


class HandlerError(CallFailedError):
    """A response or error handler raised while processing a response."""


class DispatchError(CallFailedError):
    """The declared return type cannot be produced from the response."""


def describe(exc: BaseException) -> dict[str, Any]:
    """Flatten an exception into log-friendly key/values."""
    info: dict[str, Any] = {"error": type(exc).__name__, "reason": str(exc)}
    if isinstance(exc, TransportError) and exc.status_code is not None:
        info["status"] = exc.status_code
    if isinstance(exc, RestflyException) and exc.code:
        info["code"] = exc.code
    return info
