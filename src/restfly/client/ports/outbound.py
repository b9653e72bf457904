"""Outbound ports: the HTTP channel the request executor sends through."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from restfly.client.entity import EntityWriter
    from restfly.client.http import HttpResponse


@runtime_checkable
class HttpChannel(Protocol):
    """One outgoing HTTP exchange, configured then sent exactly once.

    ``send`` raises ``TransportError`` (with ``response=None``) when no
    response could be obtained. Timeouts are seconds.
    """

    def set_header(self, name: str, value: str) -> None: ...
    def add_header(self, name: str, value: str) -> None: ...
    def set_content_type(self, content_type: str) -> None: ...
    def set_accept(self, value: str) -> None: ...
    def set_socket_timeout(self, timeout: float | None) -> None: ...
    def set_connection_timeout(self, timeout: float | None) -> None: ...
    def write_entity_with(self, writer: EntityWriter) -> None: ...
    async def send(self) -> HttpResponse: ...


@runtime_checkable
class HttpChannelFactory(Protocol):
    """Opens channels; owns the connection resources behind them."""

    def open(self, method: str, url: str, encoding: str) -> HttpChannel: ...

    async def close(self) -> None: ...
