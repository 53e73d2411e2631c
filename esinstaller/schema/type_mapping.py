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

from typing import Dict, Optional

from esinstaller.exceptions import ColumnTypeNotSupportedError
from esinstaller.model import ColumnType

BINARY_TYPE = "binary"

_ES_TYPES: Dict[ColumnType, str] = {
    ColumnType.INTEGER: "integer",
    ColumnType.LONG: "long",
    ColumnType.DOUBLE: "double",
    ColumnType.FLOAT: "float",
    ColumnType.BOOLEAN: "boolean",
    ColumnType.STRING: "keyword",
    ColumnType.COMPLEX: "keyword",
    ColumnType.TEXT: "text",
    ColumnType.JSON: "text",
    ColumnType.NESTED: "nested",
    ColumnType.BINARY: BINARY_TYPE,
}


class ColumnTypeEsMapping:
    """Maps logical column types to Elasticsearch field types"""

    def transform(self, column_type: ColumnType, generic_type: Optional[ColumnType] = None) -> str:
        if column_type == ColumnType.LIST:
            # Elasticsearch fields are multi-valued, a list is typed by its elements
            if generic_type is None or generic_type == ColumnType.LIST:
                raise ColumnTypeNotSupportedError(column_type, generic_type)
            return self.transform(generic_type)

        es_type = _ES_TYPES.get(column_type)
        if es_type is None:
            raise ColumnTypeNotSupportedError(column_type, generic_type)
        return es_type
