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

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from esinstaller.schema.mapping import Mappings


@dataclass
class Index:
    """Live state of one physical index"""
    name: str
    mappings: Mappings = field(default_factory=Mappings)
    settings: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IndexTemplate:
    """Live state of one index template"""
    name: str
    settings: Dict[str, Any] = field(default_factory=dict)
    mappings: Mappings = field(default_factory=Mappings)
    order: int = 0


class ElasticSearchClient(ABC):
    """
    Index and template operations the installer needs from the backend

    Implementations raise BackendIOError for transport or API failures and
    report rejected writes by returning False.
    """

    @abstractmethod
    def is_exists_index(self, name: str) -> bool:
        pass

    @abstractmethod
    def get_index(self, name: str) -> Optional[Index]:
        """
        Fetch an index

        Returns:
            The index with its current mapping, None if it does not exist
        """
        pass

    @abstractmethod
    def is_exists_template(self, name: str) -> bool:
        pass

    @abstractmethod
    def get_template(self, name: str) -> Optional[IndexTemplate]:
        """
        Fetch an index template

        Returns:
            The template with settings, mapping and order, None if it does not exist
        """
        pass

    @abstractmethod
    def create_index(
        self, name: str, mappings: Optional[Mappings] = None, settings: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Create an index

        Without mappings and settings the index takes them from the matching
        template.

        Returns:
            Whether the backend acknowledged the creation
        """
        pass

    @abstractmethod
    def update_index_mapping(self, name: str, mapping: Mappings) -> bool:
        """
        Add fields to the mapping of an existing index

        Returns:
            Whether the backend acknowledged the update
        """
        pass

    @abstractmethod
    def create_or_update_template(
        self, name: str, settings: Dict[str, Any], mapping: Mappings, order: int
    ) -> bool:
        """
        Put the template applied to every index named ``{name}-*``

        Returns:
            Whether the backend acknowledged the template
        """
        pass
