"""Ports of the client subsystem."""

from restfly.client.ports.outbound import HttpChannel, HttpChannelFactory

__all__ = ["HttpChannel", "HttpChannelFactory"]
