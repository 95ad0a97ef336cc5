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

from arangolite.data.channel import AsyncResultChannel, ResultChannel
from arangolite.data.cursor_engine import AsyncCursorEngine, CursorEngine
from arangolite.data.envelope import Envelope, Page, StreamItem, decode_envelope
from arangolite.data.streams import AsyncResultStream, ResultStream

__all__ = [
    "AsyncCursorEngine",
    "AsyncResultChannel",
    "AsyncResultStream",
    "CursorEngine",
    "Envelope",
    "Page",
    "ResultChannel",
    "ResultStream",
    "StreamItem",
    "decode_envelope",
]
