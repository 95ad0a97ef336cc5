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

import base64
from abc import ABC, abstractmethod
from typing import Any, Tuple, Union

from typing_extensions import override

from arangolite.settings.defaults import (
    DEFAULT_AUTH_HEADER,
    DEFAULT_BASIC_AUTH_PREFIX,
    DEFAULT_JWT_AUTH_PREFIX,
    FIXED_SECRET_PLACEHOLDER,
    SECRETS_REDACT_CHAR,
    SECRETS_REDACT_ENDING,
    SECRETS_REDACT_ENDING_LENGTH,
)

AuthType = Union["AuthProvider", Tuple[str, str]]


def coerce_auth_provider(
    auth: AuthType | None,
) -> AuthProvider:
    if isinstance(auth, AuthProvider):
        return auth
    elif auth is None:
        return NoAuthProvider()
    else:
        username, password = auth
        return BasicAuthProvider(username, password)


def _redact_secret(secret: str, max_length: int, hide_if_short: bool = True) -> str:
    """
    Return a shortened-if-necessary version of a 'secret' string (with ellipsis).

    Args:
        secret: a secret string to redact
        max_length: if the secret and the fixed ending exceed this size,
            shortening takes place.
        hide_if_short: this controls what to do when the input secret is
            shorter, i.e. when no shortening takes place.
            if False, the secret is returned as-is;
            If True, a masked string is returned of the same length as secret.

    Returns:
        a 'redacted' form of the secret string as per the rules outlined above.
    """
    secret_len = len(secret)
    if secret_len + SECRETS_REDACT_ENDING_LENGTH > max_length:
        return (
            secret[: max_length - SECRETS_REDACT_ENDING_LENGTH] + SECRETS_REDACT_ENDING
        )
    else:
        if hide_if_short:
            return SECRETS_REDACT_CHAR * len(secret)
        else:
            return secret


class AuthProvider(ABC):
    """
    Abstract base class for an authentication provider.
    The relevant method in this interface is returning the headers that
    authenticate a request to the server.

    The __str__ / __repr__ methods are NOT to be used as source of credentials:
    use get_headers instead.

    Note that equality (__eq__) checks if the generated headers match,
    regardless of the class of the providers being compared.
    """

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AuthProvider):
            return self.get_headers() == other.get_headers()
        else:
            return False

    @abstractmethod
    def __repr__(self) -> str: ...

    def __bool__(self) -> bool:
        """
        All providers, unless they supply no headers, evaluate to True.
        """
        return self.get_headers() != {}

    @abstractmethod
    def get_headers(self) -> dict[str, str]:
        """
        Produce a dictionary of headers to add to each request.
        """
        ...


class NoAuthProvider(AuthProvider):
    """
    A provider adding no authentication at all, for servers running
    with authentication disabled.
    """

    @override
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    @override
    def get_headers(self) -> dict[str, str]:
        return {}


class BasicAuthProvider(AuthProvider):
    """
    An authentication provider for HTTP basic authentication: the username and
    password are joined by a colon and base64-encoded, as required by this scheme.

    Args:
        username: the username for accessing the database.
        password: the corresponding password.

    Example:
        >>> from arangolite import ArangoClient
        >>> from arangolite.authentication import BasicAuthProvider
        >>> client = ArangoClient(auth=BasicAuthProvider("root", "secret"))
        >>> database = client.get_database("http://localhost:8529", database="shop")
    """

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self.password = password
        self.token = self._b64(f"{self.username}:{self.password}")

    @override
    def __repr__(self) -> str:
        _r_username = _redact_secret(self.username, 6)
        _r_password = FIXED_SECRET_PLACEHOLDER
        return f'{self.__class__.__name__}("username={_r_username}, password={_r_password}")'

    @staticmethod
    def _b64(cleartext: str) -> str:
        return base64.b64encode(cleartext.encode()).decode()

    @override
    def get_headers(self) -> dict[str, str]:
        return {DEFAULT_AUTH_HEADER: f"{DEFAULT_BASIC_AUTH_PREFIX}{self.token}"}


class JWTAuthProvider(AuthProvider):
    """
    A "pass-through" provider that wraps a supplied JSON Web Token,
    obtained beforehand from the server's authentication endpoint.

    Args:
        token: a JWT for subsequent use in the client.
    """

    def __init__(self, token: str) -> None:
        self.token = token

    @override
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({_redact_secret(self.token, 15)})"

    @override
    def get_headers(self) -> dict[str, str]:
        return {DEFAULT_AUTH_HEADER: f"{DEFAULT_JWT_AUTH_PREFIX}{self.token}"}
