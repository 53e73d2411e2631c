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

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import yaml

from esinstaller.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class ColumnType(str, Enum):
    """Logical column types a storage model may declare"""

    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    FLOAT = "float"
    BOOLEAN = "boolean"
    STRING = "string"
    TEXT = "text"
    # Storage object serialized into a single string value
    COMPLEX = "complex"
    # Structured object stored as a JSON string
    JSON = "json"
    NESTED = "nested"
    BINARY = "binary"
    LIST = "list"


class AnalyzerType(str, Enum):
    """Full-text analyzers the storage plugin knows how to generate"""

    OAP_ANALYZER = "oap_analyzer"
    OAP_LOG_ANALYZER = "oap_log_analyzer"


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType
    # Element type of LIST columns
    generic_type: Optional[ColumnType] = None
    # Stored and returned, never queried
    storage_only: bool = False
    # Queried, never returned in search results
    index_only: bool = False
    need_match_query: bool = False
    analyzer: Optional[AnalyzerType] = None


@dataclass(frozen=True)
class Model:
    """Logical storage entity supplied by the model registry"""

    name: str
    columns: Tuple[Column, ...] = field(default_factory=tuple)
    is_time_series: bool = False
    is_super_dataset: bool = False
    is_metric: bool = False
    is_record: bool = False


def _parse_enum(enum_cls, value, model_name: str, column_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ConfigurationError(
            f"Invalid {enum_cls.__name__} '{value}' for column {model_name}.{column_name}"
        ) from None


def _parse_column(model_name: str, raw: Dict[str, Any]) -> Column:
    name = raw.get("name")
    if not name:
        raise ConfigurationError(f"Column without name in model {model_name}")
    generic_type = raw.get("generic_type")
    analyzer = raw.get("analyzer")
    return Column(
        name=name,
        type=_parse_enum(ColumnType, raw.get("type"), model_name, name),
        generic_type=_parse_enum(ColumnType, generic_type, model_name, name) if generic_type else None,
        storage_only=bool(raw.get("storage_only", False)),
        index_only=bool(raw.get("index_only", False)),
        need_match_query=bool(raw.get("need_match_query", False)),
        analyzer=_parse_enum(AnalyzerType, analyzer, model_name, name) if analyzer else None,
    )


def parse_models(document: Dict[str, Any]) -> List[Model]:
    """Build models from a parsed ``{"models": [...]}`` document"""
    models = []
    for raw in document.get("models") or []:
        name = raw.get("name")
        if not name:
            raise ConfigurationError("Model definition without name")
        columns = tuple(_parse_column(name, c) for c in raw.get("columns") or [])
        models.append(
            Model(
                name=name,
                columns=columns,
                is_time_series=bool(raw.get("time_series", False)),
                is_super_dataset=bool(raw.get("super_dataset", False)),
                is_metric=bool(raw.get("metric", False)),
                is_record=bool(raw.get("record", False)),
            )
        )
    return models


def load_models(path: str) -> List[Model]:
    """Load model definitions from a YAML file"""
    logger.info(f"Loading model definitions from {path}")
    with open(path, "r", encoding="utf-8") as f:
        document = yaml.safe_load(f) or {}
    if not isinstance(document, dict):
        raise ConfigurationError(f"Model definition file {path} must contain a mapping")
    return parse_models(document)
