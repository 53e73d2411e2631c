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
import threading
from typing import Any, Dict, Optional

from esinstaller.schema.mapping import Mappings

logger = logging.getLogger(__name__)


def field_type(definition: Dict[str, Any]) -> Optional[str]:
    """Declared type of a field; objects are returned by the backend without one"""
    if "type" in definition:
        return definition["type"]
    if "properties" in definition:
        return "object"
    return None


def diff_mappings(known: Mappings, live: Mappings) -> Mappings:
    """Fields of known whose names are absent from live"""
    missing = {
        name: copy.deepcopy(definition)
        for name, definition in known.properties.items()
        if name not in live.properties
    }
    return Mappings(properties=missing)


def _merge(table_name: str, known: Mappings, mapping: Mappings):
    for name, definition in mapping.properties.items():
        existing = known.properties.get(name)
        if existing is None:
            known.properties[name] = copy.deepcopy(definition)
        elif field_type(existing) != field_type(definition):
            logger.warning(
                f"Field {name} of {table_name} is already typed {field_type(existing)}, "
                f"keeping it instead of {field_type(definition)}"
            )
    for name in mapping.source_excludes:
        if name not in known.source_excludes:
            known.source_excludes.append(name)


class IndexStructures:
    """
    Known field layout per physical table

    Entries only grow: a table's structure is the union of every mapping put
    for it, and a field keeps the definition it was first seen with. Callers
    put only what the backend holds or has acknowledged; merge_structure
    previews a merge without recording it.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._structures: Dict[str, Mappings] = {}

    def put_structure(self, table_name: str, mapping: Mappings):
        with self._lock:
            known = self._structures.get(table_name)
            if known is None:
                self._structures[table_name] = mapping.copy()
                return
            _merge(table_name, known, mapping)

    def merge_structure(self, table_name: str, mapping: Mappings) -> Mappings:
        """Known structure of the table with mapping merged in, the cache is left untouched"""
        with self._lock:
            known = self._structures.get(table_name)
            if known is None:
                return mapping.copy()
            merged = known.copy()
        _merge(table_name, merged, mapping)
        return merged

    def get_mapping(self, table_name: str) -> Mappings:
        with self._lock:
            known = self._structures.get(table_name)
            return known.copy() if known is not None else Mappings()

    def contains_structure(self, table_name: str, mapping: Mappings) -> bool:
        """Every field of mapping is known for the table, with the same type"""
        with self._lock:
            known = self._structures.get(table_name)
            if known is None:
                return False
            for name, definition in mapping.properties.items():
                existing = known.properties.get(name)
                if existing is None or field_type(existing) != field_type(definition):
                    return False
            return True

    def missing_structure(self, table_name: str, mapping: Mappings) -> Mappings:
        """
        Fields of mapping the table does not know by name

        A field known under another type is not missing: existing fields are
        never retyped, so there is nothing to send for it.
        """
        with self._lock:
            known = self._structures.get(table_name) or Mappings()
            return diff_mappings(mapping, known)

    def diff_structure(self, table_name: str, live: Mappings) -> Mappings:
        """Known fields of the table missing from live; removals are never reported"""
        with self._lock:
            known = self._structures.get(table_name)
            if known is None:
                return Mappings()
            return diff_mappings(known, live)

    def clear(self):
        with self._lock:
            self._structures.clear()
