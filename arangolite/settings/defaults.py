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

# Defaults/settings for database addressing
DEFAULT_DATABASE_NAME = "_system"
DATABASE_PATH_TEMPLATE = "_db/{database}"

# Paths of the server APIs, relative to the database path
CURSOR_API_PATH = "/_api/cursor"
TRANSACTION_API_PATH = "/_api/transaction"
DATABASE_API_PATH = "/_api/database"
COLLECTION_API_PATH = "/_api/collection"

# Defaults/settings for requests
DEFAULT_REQUEST_TIMEOUT_MS = 30000
DEFAULT_AUTH_HEADER = "Authorization"
DEFAULT_BASIC_AUTH_PREFIX = "Basic "
DEFAULT_JWT_AUTH_PREFIX = "bearer "

# Defaults/settings for cursor result delivery.
# A capacity of None stands for an unbounded result channel.
DEFAULT_RESULT_CHANNEL_CAPACITY = 16

# Settings for redacting secrets in string representations and logging
SECRETS_REDACT_ENDING = "..."
SECRETS_REDACT_CHAR = "*"
SECRETS_REDACT_ENDING_LENGTH = 3
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_AUTH_HEADER,
}
