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
"""RestClientFactory — turns declared client classes into working clients."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from restfly.client.config.model import InterfaceConfig, MethodConfig
from restfly.client.config.resolver import ConfigResolver
from restfly.client.config.sources import ConfigSource, DeclarativeConfigSource, PropertiesConfigSource
from restfly.client.deserializers import DeserializerRegistry
from restfly.client.invocation import InvocationEngine
from restfly.client.ports.outbound import HttpChannelFactory
from restfly.client.transport import RequestExecutor
from restfly.config.properties.client import ClientProperties
from restfly.core.config import Config

if TYPE_CHECKING:
    from restfly.security.authorization import Authorization
    from restfly.security.extractors import EntityParamExtractor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RestClientFactory:
    """Creates client instances whose endpoint methods send HTTP requests.

    Each client class is resolved once and its ``InterfaceConfig`` cached
    for the lifetime of the factory. Clients of one factory share its
    channel factory (and so its connection pool).

    Args:
        channel_factory: Transport. Defaults to an ``HttpxChannelFactory``.
        sources: Configuration sources, highest precedence first. When
            omitted: a ``PropertiesConfigSource`` over *properties* (if
            given) ahead of the declarative metadata.
        properties: Flat ``service.*`` key-value configuration.
        defaults: Global facet defaults below every source.
        deserializers: Registry for the default response handler.
        authorization: When set, every request is signed through an
            ``AuthorizationChannelFactory``.
        entity_param_extractors: Extractors used by the authorization
            channel, keyed by short content type.
    """

    def __init__(
        self,
        channel_factory: HttpChannelFactory | None = None,
        *,
        sources: Sequence[ConfigSource] | None = None,
        properties: Mapping[str, Any] | None = None,
        defaults: Mapping[str, Any] | None = None,
        deserializers: DeserializerRegistry | None = None,
        authorization: Authorization | None = None,
        entity_param_extractors: Mapping[str, EntityParamExtractor] | None = None,
    ) -> None:
        if channel_factory is None:
            from restfly.client.adapters.httpx_adapter import HttpxChannelFactory

            channel_factory = HttpxChannelFactory()
        self._transport = channel_factory
        if authorization is not None:
            from restfly.security.channel import AuthorizationChannelFactory

            channel_factory = AuthorizationChannelFactory(
                channel_factory, authorization, entity_param_extractors
            )
        self._executor = RequestExecutor(channel_factory)

        if sources is None:
            sources = [DeclarativeConfigSource()]
            if properties:
                sources = [PropertiesConfigSource(properties), *sources]
        self._resolver = ConfigResolver(sources, defaults, deserializers)
        self._configs: dict[type, InterfaceConfig] = {}

    @classmethod
    def from_config(
        cls, config: Config, channel_factory: HttpChannelFactory | None = None, **kwargs: Any
    ) -> RestClientFactory:
        """Factory configured from ``service.*`` and ``restfly.client.*`` of *config*."""
        defaults = config.bind(ClientProperties).as_facets()
        return cls(
            channel_factory,
            properties=config.to_properties("service"),
            defaults=defaults,
            **kwargs,
        )

    @property
    def executor(self) -> RequestExecutor:
        return self._executor

    def config_for(self, client_cls: type) -> InterfaceConfig:
        """Resolved configuration of *client_cls*, resolved on first use."""
        config = self._configs.get(client_cls)
        if config is None:
            config = self._resolver.resolve(client_cls)
            self._configs[client_cls] = config
        return config

    def create(self, client_cls: type[T], *args: Any, **kwargs: Any) -> T:
        """Instantiate *client_cls* with its endpoint methods implemented.

        Extra arguments go to the class constructor.

        Raises:
            ConfigResolutionError: the class configuration cannot be resolved.
        """
        config = self.config_for(client_cls)
        engine = InvocationEngine(config, self._executor)
        namespace: dict[str, Any] = {
            m.name: _make_method_impl(engine, m, getattr(client_cls, m.name)) for m in config.methods
        }
        namespace["__repr__"] = _client_repr
        namespace["__restfly_wired__"] = True
        namespace["__restfly_config__"] = config
        namespace["__module__"] = client_cls.__module__
        namespace["__qualname__"] = client_cls.__qualname__
        proxy_cls = type(client_cls.__name__, (client_cls,), namespace)
        logger.debug("Created client %s for %s", client_cls.__qualname__, config.end_point)
        return proxy_cls(*args, **kwargs)

    def wire(self, bean: T) -> T:
        """Implement the endpoint methods of an existing instance in place."""
        cls = type(bean)
        if getattr(bean, "__restfly_wired__", False):
            return bean
        config = self.config_for(cls)
        engine = InvocationEngine(config, self._executor)
        for method_config in config.methods:
            impl = _make_method_impl(engine, method_config, getattr(cls, method_config.name))
            setattr(bean, method_config.name, impl.__get__(bean, cls))
        bean.__restfly_wired__ = True  # type: ignore[attr-defined]
        return bean

    async def close(self) -> None:
        """Release the transport."""
        await self._transport.close()

    async def __aenter__(self) -> RestClientFactory:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def _make_method_impl(engine: InvocationEngine, method_config: MethodConfig, original: Any) -> Any:
    sig = inspect.signature(original)

    async def implementation(self_arg: Any, *args: Any, **kwargs: Any) -> Any:
        bound = sig.bind(self_arg, *args, **kwargs)
        bound.apply_defaults()
        values = list(bound.arguments.values())[1:]
        return await engine.invoke(method_config, values)

    implementation.__name__ = original.__name__
    implementation.__qualname__ = original.__qualname__
    implementation.__doc__ = original.__doc__
    implementation.__wrapped__ = original  # type: ignore[attr-defined]
    return implementation


def _client_repr(self: Any) -> str:
    config: InterfaceConfig = self.__restfly_config__
    return f"<{config.interface.__qualname__} client for {config.end_point}>"
