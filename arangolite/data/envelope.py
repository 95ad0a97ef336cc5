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
import re
from dataclasses import dataclass, field
from typing import Any

from arangolite.exceptions import DecodeException

_JSON_WHITESPACE = re.compile(r"[ \t\n\r]*")
_STRING_OR_WHITESPACE = re.compile(r'("(?:[^"\\]|\\.)*")|[ \t\n\r]+', re.DOTALL)


def _reject_constant(constant: str) -> Any:
    raise ValueError(f"Non-standard JSON constant '{constant}'.")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _compact(json_text: str) -> str:
    # whitespace outside of strings is dropped, every token is kept verbatim
    return _STRING_OR_WHITESPACE.sub(lambda match: match.group(1) or "", json_text)


def _skip_whitespace(text: str, index: int) -> int:
    match = _JSON_WHITESPACE.match(text, index)
    return match.end() if match else index


def _child_spans(text: str, index: int) -> list[tuple[str | None, int, int]]:
    """
    Locate the children of the JSON array or object opening at `index`
    of a text known to be valid JSON: a (key, start, end) triple for each,
    the key being None for array elements.
    """
    is_object = text[index] == "{"
    closing = "}" if is_object else "]"
    spans: list[tuple[str | None, int, int]] = []
    index = _skip_whitespace(text, index + 1)
    if text[index] == closing:
        return spans
    while True:
        key: str | None = None
        if is_object:
            key, index = _DECODER.raw_decode(text, index)
            # past the colon
            index = _skip_whitespace(text, _skip_whitespace(text, index) + 1)
        _, end = _DECODER.raw_decode(text, index)
        spans.append((key, index, end))
        index = _skip_whitespace(text, end)
        if text[index] != ",":
            return spans
        index = _skip_whitespace(text, index + 1)


def _result_texts(raw_text: str) -> list[str]:
    """
    The JSON text of each result element of a response, as sent by the
    server (only insignificant whitespace removed).
    """
    result_span: tuple[int, int] | None = None
    for key, start, end in _child_spans(raw_text, _skip_whitespace(raw_text, 0)):
        # the last occurrence wins, as in json.loads
        if key == "result":
            result_span = (start, end)
    if result_span is None:
        return []
    start, end = result_span
    if raw_text[start] == "[":
        return [
            _compact(raw_text[el_start:el_end])
            for _, el_start, el_end in _child_spans(raw_text, start)
        ]
    result_text = raw_text[start:end]
    return [] if result_text == "null" else [_compact(result_text)]


def _to_json_text(value: Any) -> str:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    try:
        text.encode()
    except UnicodeEncodeError:
        # lone surrogates can only travel escaped
        return json.dumps(value, separators=(",", ":"), allow_nan=False)
    return text


def _join_texts(texts: list[str]) -> bytes:
    return f"[{','.join(texts)}]".encode()


@dataclass
class Envelope:
    """
    A decoded response from the server, with the pagination information
    and the (possibly empty) page of result elements it carries.

    Attributes:
        error: whether the server reported a failure.
        error_message: the message accompanying a failure, empty otherwise.
        error_num: the server-side error number, if any.
        code: the HTTP code reported within the response, if any.
        elements: the result elements carried by this response.
        has_more: whether a continuation request can fetch further pages.
        cursor_id: the identifier for continuation requests. Always present
            if `has_more` is True.
        raw_response: the whole response as a dictionary.
        element_texts: the JSON text of each element, as sent by the server.
    """

    error: bool
    error_message: str
    error_num: int | None
    code: int | None
    elements: list[Any]
    has_more: bool
    cursor_id: str | None
    raw_response: dict[str, Any] = field(repr=False)
    element_texts: list[str] | None = field(default=None, repr=False)

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any], raw_text: str) -> Envelope:
        def _fail(msg: str) -> DecodeException:
            return DecodeException(text=msg, raw_response=raw_text)

        error = raw_dict.get("error", False)
        if not isinstance(error, bool):
            raise _fail("The 'error' field of the response is not a boolean.")
        error_message = raw_dict.get("errorMessage")
        if error_message is None:
            error_message = ""
        if not isinstance(error_message, str):
            raise _fail("The 'errorMessage' field of the response is not a string.")
        error_num = raw_dict.get("errorNum")
        if error_num is not None and (
            isinstance(error_num, bool) or not isinstance(error_num, int)
        ):
            raise _fail("The 'errorNum' field of the response is not an integer.")
        code = raw_dict.get("code")
        if code is not None and (isinstance(code, bool) or not isinstance(code, int)):
            raise _fail("The 'code' field of the response is not an integer.")

        # an absent (or null) result is an empty page, a non-array is one element
        elements: list[Any]
        if "result" not in raw_dict or raw_dict["result"] is None:
            elements = []
        elif isinstance(raw_dict["result"], list):
            elements = raw_dict["result"]
        else:
            elements = [raw_dict["result"]]

        has_more = raw_dict.get("hasMore", False)
        if has_more is None:
            has_more = False
        if not isinstance(has_more, bool):
            raise _fail("The 'hasMore' field of the response is not a boolean.")
        cursor_id: str | None
        raw_id = raw_dict.get("id")
        if raw_id is None:
            cursor_id = None
        elif isinstance(raw_id, str):
            cursor_id = raw_id
        elif isinstance(raw_id, int) and not isinstance(raw_id, bool):
            cursor_id = str(raw_id)
        else:
            raise _fail("The 'id' field of the response is not a string.")
        if has_more and not error and not cursor_id:
            raise _fail("The response announces more pages but carries no cursor id.")

        try:
            element_texts = _result_texts(raw_text)
        except (ValueError, IndexError):
            raise _fail("The result elements of the response cannot be located.")
        if len(element_texts) != len(elements):
            raise _fail("The result elements of the response cannot be located.")

        return cls(
            error=error,
            error_message=error_message,
            error_num=error_num,
            code=code,
            elements=elements,
            has_more=has_more and not error,
            cursor_id=cursor_id,
            raw_response=raw_dict,
            element_texts=element_texts,
        )


def decode_envelope(raw: bytes | str) -> Envelope:
    """
    Parse the body of a response from the server into an `Envelope`.

    Args:
        raw: the response body, as bytes or as a string.

    Returns:
        an `Envelope`. A response with `"error": true` is decoded normally,
        and its continuation information is disregarded.

    Raises:
        DecodeException: if the body is not a JSON object, or if any of the
            envelope fields has the wrong type.
    """

    raw_text: str
    if isinstance(raw, bytes):
        try:
            raw_text = raw.decode()
        except UnicodeDecodeError:
            raise DecodeException(
                text="The response is not valid UTF-8 text.",
                raw_response=raw.decode(errors="replace"),
            )
    else:
        raw_text = raw
        try:
            raw_text.encode()
        except UnicodeEncodeError:
            raise DecodeException(
                text="The response is not valid Unicode text.",
                raw_response=raw_text.encode(errors="replace").decode(),
            )
    try:
        raw_dict = _DECODER.decode(raw_text)
    except ValueError:
        raise DecodeException(
            text="The response could not be parsed as standard JSON.",
            raw_response=raw_text,
        )
    if not isinstance(raw_dict, dict):
        raise DecodeException(
            text="The response is not a JSON object.",
            raw_response=raw_text,
        )
    return Envelope._from_dict(raw_dict, raw_text)


@dataclass
class Page:
    """
    The result elements carried by one envelope, in the order the server sent them.

    Attributes:
        elements: the result elements, as Python objects.
        texts: the JSON text of each element as sent by the server. If omitted,
            it is obtained by serializing the elements.
    """

    elements: list[Any]
    texts: list[str] | None = field(default=None, repr=False)

    def json_texts(self) -> list[str]:
        if self.texts is not None:
            return self.texts
        return [_to_json_text(element) for element in self.elements]

    def to_json(self) -> bytes:
        """The page elements as a compact JSON array."""
        return _join_texts(self.json_texts())

    @property
    def payload(self) -> bytes:
        return self.to_json()


@dataclass
class StreamItem:
    """
    One item delivered by a result channel: either a page of results
    or the terminal error of the cursor.

    Attributes:
        page: the page carried by this item, for non-error items.
        error: the exception that ended the cursor, for the terminal item.
    """

    page: Page | None = None
    error: Exception | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def payload(self) -> bytes | None:
        """The page as JSON bytes, or None for the error item."""
        if self.page is None:
            return None
        return self.page.to_json()


def aggregate_pages(pages: list[Page]) -> bytes:
    """
    Concatenate the elements of a sequence of pages, in order, into
    a single JSON array.
    """

    return _join_texts([text for page in pages for text in page.json_texts()])
