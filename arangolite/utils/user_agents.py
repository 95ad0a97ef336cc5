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

from typing import Sequence

from arangolite import __version__
from arangolite.constants import CallerType

LIBRARY_CALLER: CallerType = ("arangolite", __version__)


def _caller_token(caller: CallerType) -> str | None:
    name, version = caller
    if not name:
        return None
    return f"{name}/{version}" if version else name


def compose_user_agent(callers: Sequence[CallerType]) -> str:
    """
    Build the User-Agent header value: the caller identities in the given
    order, then the library itself. Callers without a name are skipped and
    repeated identities appear once.
    """

    tokens: list[str] = []
    for caller in [*callers, LIBRARY_CALLER]:
        token = _caller_token(caller)
        if token and token not in tokens:
            tokens.append(token)
    return " ".join(tokens)
