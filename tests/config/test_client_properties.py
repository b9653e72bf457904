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
"""Tests for ClientProperties binding (restfly.client.*)."""

from pathlib import Path

from restfly.config.properties.client import ClientProperties
from restfly.core.config import Config


class TestClientProperties:
    def test_framework_defaults(self, tmp_path: Path):
        props = Config.from_file(tmp_path / "absent.yaml").bind(ClientProperties)
        assert props == ClientProperties()
        assert props.as_facets() == {"encoding": "utf-8", "http_method": "GET"}

    def test_kebab_case_keys(self):
        config = Config(
            {"restfly": {"client": {"http-method": "POST", "socket-timeout": "30", "connection-timeout": 2}}}
        )
        props = config.bind(ClientProperties)
        assert props.http_method == "POST"
        assert props.as_facets() == {
            "encoding": "utf-8",
            "http_method": "POST",
            "socket_timeout": "30",
            "connection_timeout": 2,
        }

    def test_empty_timeouts_dropped(self):
        props = ClientProperties(socket_timeout="", connection_timeout=None)
        assert "socket_timeout" not in props.as_facets()
        assert "connection_timeout" not in props.as_facets()
