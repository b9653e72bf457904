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
"""Retry handlers — decide whether a failed attempt is sent again."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Collection
from datetime import timedelta
from typing import Protocol, runtime_checkable

from restfly.client.context import ResponseContext
from restfly.kernel.exceptions import TransportError

logger = logging.getLogger(__name__)


@runtime_checkable
class RetryHandler(Protocol):
    """``attempt`` is 1 after the first failure, 2 after the second, and so on.

    The engine imposes no limit: a handler that always returns ``True``
    retries forever.
    """

    def retry(
        self, response_context: ResponseContext, exception: BaseException, attempt: int
    ) -> bool | Awaitable[bool]: ...


class NeverRetry:
    """Default handler: every failure goes straight to the error handler."""

    def retry(self, response_context: ResponseContext, exception: BaseException, attempt: int) -> bool:
        return False


class RetryPolicy:
    """Retry with exponential backoff.

    Args:
        max_attempts: Maximum number of attempts (including the first).
        base_delay: Delay before the first retry, doubled on each retry.
        retry_on: Exception types worth retrying. Defaults to all.
        retry_on_status: When set, a ``TransportError`` is only retried if
            its response status is in this collection.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: timedelta = timedelta(seconds=1),
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        retry_on_status: Collection[int] | None = None,
    ) -> None:
        self._max_attempts = max_attempts
        self._base_delay = base_delay.total_seconds()
        self._retry_on = retry_on
        self._retry_on_status = frozenset(retry_on_status) if retry_on_status is not None else None

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def should_retry(self, exception: BaseException, attempt: int) -> bool:
        if attempt >= self._max_attempts:
            return False
        if not isinstance(exception, self._retry_on):
            return False
        if self._retry_on_status is not None and isinstance(exception, TransportError):
            return exception.status_code in self._retry_on_status
        return True

    async def retry(self, response_context: ResponseContext, exception: BaseException, attempt: int) -> bool:
        if not self.should_retry(exception, attempt):
            return False
        delay = self._base_delay * (2 ** (attempt - 1))
        if delay > 0:
            logger.debug(
                "Retrying %s in %.3fs (attempt %d of %d)",
                response_context.method_config.name,
                delay,
                attempt + 1,
                self._max_attempts,
            )
            await asyncio.sleep(delay)
        return True
