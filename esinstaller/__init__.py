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

"""
Elasticsearch storage installer

Reconciles logical storage models with the indices and index templates of an
Elasticsearch cluster.

Key components:
- StorageEsInstaller: creates missing tables and appends missing fields
- MappingBuilder / SettingsBuilder: compute the desired layout of a model
- IndexStructures: known field layout per physical table
"""

from .index.installer import StorageEsInstaller
from .schema.mapping import MappingBuilder, Mappings
from .schema.settings import SettingsBuilder
from .schema.structures import IndexStructures

__all__ = [
    "StorageEsInstaller",
    "MappingBuilder",
    "Mappings",
    "SettingsBuilder",
    "IndexStructures",
]
