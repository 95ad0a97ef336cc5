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

import json
from abc import ABC, abstractmethod
from typing import Any

from arangolite.exceptions import MarshalException


def marshal_payload(payload: Any) -> bytes | None:
    """
    Serialize a request payload to compact JSON.

    Args:
        payload: a JSON-serializable object. Bytes are passed through as they
            are, and None stands for "no body".

    Returns:
        the request body, or None.

    Raises:
        MarshalException: if the payload cannot be serialized.
    """

    if payload is None:
        return None
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    try:
        return json.dumps(
            payload,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        ).encode()
    except (TypeError, ValueError) as exc:
        raise MarshalException(f"Cannot serialize the request payload: {exc}") from exc


class Runnable(ABC):
    """
    Anything that can be sent to the server through a `Database`:
    a query, a transaction, or one of the management operations.

    Subclasses state the target of the request and produce its body;
    the database takes care of the cursor lifecycle.
    """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.method()} {self.path()})"

    @abstractmethod
    def description(self) -> str:
        """A short label for the runnable, used in logs."""
        ...

    @abstractmethod
    def path(self) -> str:
        """The API path, relative to the database, of the first request."""
        ...

    @abstractmethod
    def method(self) -> str:
        """The HTTP method of the first request."""
        ...

    @abstractmethod
    def generate(self) -> bytes | None:
        """
        The body of the first request, or None for no body.

        Raises:
            MarshalException: if the body cannot be serialized.
        """
        ...
