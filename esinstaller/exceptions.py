# Copyright 2025 ApeCloud, Inc.
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

from typing import Optional


class ConfigurationError(Exception):
    """Deploy-time mismatch between model definitions and the storage plugin"""


class ColumnTypeNotSupportedError(ConfigurationError):
    def __init__(self, column_type, generic_type=None):
        self.column_type = column_type
        self.generic_type = generic_type
        message = f"Unsupported column type {column_type}"
        if generic_type is not None:
            message += f" with generic type {generic_type}"
        super().__init__(message)


class UnknownAnalyzerError(ConfigurationError):
    def __init__(self, analyzer):
        self.analyzer = analyzer
        super().__init__(f"No analyzer setting generator registered for {analyzer}")


class StorageException(Exception):
    """
    A create or update call against the backend failed for one table.

    Raised both when the backend does not acknowledge the call and when the
    call itself failed; the original error, if any, is chained as __cause__.
    """

    def __init__(self, message: str, table: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.operation = operation


class InternalConsistencyError(Exception):
    """The backend client returned contradicting answers about the same object"""


class BackendIOError(IOError):
    """Transport or API level failure raised by a backend client"""
