# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import re

generic_api_url_matcher = re.compile(
    r"^https?:\/\/(\[[0-9a-fA-F:.]+\]|[a-zA-Z0-9\-.]+)(\:[0-9]{1,6}){0,1}$"
)
generic_api_url_descriptor = "http[s]://<domain name or IP>[:port]"


def parse_server_url(api_endpoint: str) -> str | None:
    """
    Validate the base URL of a server,
    such as `http://10.1.1.1:8529` or `https://my.domain`.

    Args:
        api_endpoint: a string supposedly expressing the URL of a server.

    Returns:
        a normalized (stripped) version of the URL if valid. If invalid,
        return None.
    """
    _api_endpoint = api_endpoint.strip()
    if _api_endpoint and _api_endpoint[-1] == "/":
        _api_endpoint = _api_endpoint[:-1]
    match = generic_api_url_matcher.match(_api_endpoint)
    if match:
        return match[0].rstrip("/")
    else:
        return None


def server_url_parsing_error_message(failing_url: str) -> str:
    """
    Format an error message with a suggestion for the expected url format.
    """
    return (
        f"Cannot parse the supplied server URL ({failing_url}). The URL "
        f'must be in the following form: "{generic_api_url_descriptor}".'
    )
