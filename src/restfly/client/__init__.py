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
"""restfly Client — declarative REST clients with pluggable retry, error and response handling."""

from restfly.client.builder import RequestBuilder
from restfly.client.config.model import Destination, InterfaceConfig, MethodConfig, ParamConfig
from restfly.client.config.resolver import ConfigResolver
from restfly.client.config.sources import ConfigSource, DeclarativeConfigSource, PropertiesConfigSource
from restfly.client.context import ParamContext, RequestContext, ResponseContext
from restfly.client.declarative import (
    consumes,
    delete,
    endpoint,
    error_handler,
    get,
    head,
    method_config,
    options,
    patch,
    post,
    produces,
    put,
    request_interceptor,
    response_handler,
    rest_client,
    retry_handler,
    timeouts,
)
from restfly.client.dispatcher import ResponseDispatcher
from restfly.client.factory import RestClientFactory
from restfly.client.handlers import (
    DefaultResponseHandler,
    ErrorHandler,
    FallbackErrorHandler,
    ResponseHandler,
    RethrowErrorHandler,
    ReturnNoneErrorHandler,
)
from restfly.client.http import HttpRequest, HttpRequestBuilder, HttpResponse, Pair
from restfly.client.injectors import DefaultInjector, Injector
from restfly.client.interceptors import CompositeRequestInterceptor, HeadersInterceptor, RequestInterceptor
from restfly.client.invocation import InvocationEngine
from restfly.client.params import (
    Body,
    CookieParam,
    FormParam,
    HeaderParam,
    MatrixParam,
    MultiPartParam,
    Param,
    PathParam,
    QueryParam,
    rest_param,
)
from restfly.client.ports.outbound import HttpChannel, HttpChannelFactory
from restfly.client.retry import NeverRetry, RetryHandler, RetryPolicy
from restfly.client.transport import RequestExecutor

__all__ = [
    "Body",
    "CompositeRequestInterceptor",
    "ConfigResolver",
    "ConfigSource",
    "CookieParam",
    "DeclarativeConfigSource",
    "DefaultInjector",
    "DefaultResponseHandler",
    "Destination",
    "ErrorHandler",
    "FallbackErrorHandler",
    "FormParam",
    "HeaderParam",
    "HeadersInterceptor",
    "HttpChannel",
    "HttpChannelFactory",
    "HttpRequest",
    "HttpRequestBuilder",
    "HttpResponse",
    "Injector",
    "InterfaceConfig",
    "InvocationEngine",
    "MatrixParam",
    "MethodConfig",
    "MultiPartParam",
    "NeverRetry",
    "Pair",
    "Param",
    "ParamConfig",
    "ParamContext",
    "PathParam",
    "PropertiesConfigSource",
    "QueryParam",
    "RequestBuilder",
    "RequestContext",
    "RequestExecutor",
    "RequestInterceptor",
    "ResponseContext",
    "ResponseDispatcher",
    "ResponseHandler",
    "RestClientFactory",
    "RethrowErrorHandler",
    "RetryHandler",
    "RetryPolicy",
    "ReturnNoneErrorHandler",
    "consumes",
    "delete",
    "endpoint",
    "error_handler",
    "get",
    "head",
    "method_config",
    "options",
    "patch",
    "post",
    "produces",
    "put",
    "request_interceptor",
    "response_handler",
    "rest_client",
    "rest_param",
    "retry_handler",
    "timeouts",
]
