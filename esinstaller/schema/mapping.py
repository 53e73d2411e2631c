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

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from esinstaller.exceptions import ConfigurationError
from esinstaller.index.naming import IndexController, LogicIndicesRegister
from esinstaller.model import Model
from esinstaller.schema.match_name import MatchCNameBuilder, match_cname_builder
from esinstaller.schema.type_mapping import BINARY_TYPE, ColumnTypeEsMapping

logger = logging.getLogger(__name__)


@dataclass
class Mappings:
    """Field layout of an index or template"""

    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    source_excludes: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.properties

    def copy(self) -> "Mappings":
        return Mappings(copy.deepcopy(self.properties), list(self.source_excludes))

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"properties": copy.deepcopy(self.properties)}
        if self.source_excludes:
            body["_source"] = {"excludes": list(self.source_excludes)}
        return body

    @classmethod
    def from_dict(cls, body: Optional[Dict[str, Any]]) -> "Mappings":
        """
        Parse a mapping returned by the backend

        Older clusters wrap the mapping in a single document type,
        ``{"type": {"properties": ...}}``; the type level is dropped.
        """
        if not body:
            return cls()
        if "properties" not in body and "_source" not in body and len(body) == 1:
            (inner,) = body.values()
            if isinstance(inner, dict) and ("properties" in inner or "_source" in inner):
                body = inner
        source = body.get("_source") or {}
        return cls(
            properties=copy.deepcopy(body.get("properties") or {}),
            source_excludes=list(source.get("excludes") or []),
        )


class MappingBuilder:
    def __init__(
        self,
        index_controller: IndexController,
        type_mapping: Optional[ColumnTypeEsMapping] = None,
        match_builder: Optional[MatchCNameBuilder] = None,
    ):
        self.index_controller = index_controller
        self.type_mapping = type_mapping or ColumnTypeEsMapping()
        self.match_builder = match_builder or match_cname_builder

    def create_mapping(self, model: Model) -> Mappings:
        properties: Dict[str, Dict[str, Any]] = {}
        excludes: List[str] = []
        for column in model.columns:
            es_type = self.type_mapping.transform(column.type, column.generic_type)
            if column.need_match_query:
                if column.analyzer is None:
                    raise ConfigurationError(
                        f"Column {model.name}.{column.name} needs match query but has no analyzer"
                    )
                match_name = self.match_builder.build(column.name)
                properties[column.name] = {"type": es_type, "copy_to": match_name}
                properties[match_name] = {"type": "text", "analyzer": column.analyzer.value}
            else:
                definition: Dict[str, Any] = {"type": es_type}
                # binary fields do not accept the index parameter
                if column.storage_only and es_type != BINARY_TYPE:
                    definition["index"] = False
                properties[column.name] = definition

            if column.index_only:
                excludes.append(column.name)

        if self.index_controller.is_metric_model(model):
            properties[LogicIndicesRegister.METRIC_TABLE_NAME] = {"type": "keyword"}

        mappings = Mappings(properties=properties, source_excludes=excludes)
        logger.debug(f"elasticsearch index mapping of {model.name}: {mappings.to_dict()}")
        return mappings
