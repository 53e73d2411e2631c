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
from typing import Any, Dict, Optional

from elasticsearch import ApiError, Elasticsearch, NotFoundError, TransportError

from esinstaller.client.base import ElasticSearchClient, Index, IndexTemplate
from esinstaller.config import StorageConfig
from esinstaller.exceptions import BackendIOError
from esinstaller.schema.mapping import Mappings

logger = logging.getLogger(__name__)


def _body(response) -> Dict[str, Any]:
    return getattr(response, "body", response) or {}


class ElasticsearchStorageClient(ElasticSearchClient):
    """ElasticSearchClient on top of the official Elasticsearch SDK"""

    def __init__(self, es: Elasticsearch, namespace: str = ""):
        self.es = es
        self.namespace = (namespace or "").lower()

    @classmethod
    def from_config(cls, config: StorageConfig) -> "ElasticsearchStorageClient":
        kwargs: Dict[str, Any] = {"request_timeout": config.request_timeout}
        if config.username:
            kwargs["basic_auth"] = (config.username, config.password or "")
        logger.info(f"Connecting to Elasticsearch {config.hosts}")
        return cls(Elasticsearch(config.hosts, **kwargs), namespace=config.namespace)

    def close(self):
        """Close the underlying transport"""
        self.es.close()

    def format_index_name(self, name: str) -> str:
        if self.namespace:
            return f"{self.namespace}_{name}"
        return name

    def is_exists_index(self, name: str) -> bool:
        index_name = self.format_index_name(name)
        try:
            return bool(self.es.indices.exists(index=index_name))
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to check index {index_name}: {e}") from e

    def get_index(self, name: str) -> Optional[Index]:
        index_name = self.format_index_name(name)
        try:
            body = _body(self.es.indices.get(index=index_name))
        except NotFoundError:
            return None
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to get index {index_name}: {e}") from e
        if not body:
            return None
        # Keyed by the concrete index name, which differs when name is an alias
        state = body.get(index_name) or next(iter(body.values()))
        return Index(
            name=name,
            mappings=Mappings.from_dict(state.get("mappings")),
            settings=state.get("settings") or {},
        )

    def is_exists_template(self, name: str) -> bool:
        template_name = self.format_index_name(name)
        try:
            return bool(self.es.indices.exists_template(name=template_name))
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to check template {template_name}: {e}") from e

    def get_template(self, name: str) -> Optional[IndexTemplate]:
        template_name = self.format_index_name(name)
        try:
            body = _body(self.es.indices.get_template(name=template_name))
        except NotFoundError:
            return None
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to get template {template_name}: {e}") from e
        state = body.get(template_name)
        if state is None:
            return None
        return IndexTemplate(
            name=name,
            settings=state.get("settings") or {},
            mappings=Mappings.from_dict(state.get("mappings")),
            order=state.get("order", 0),
        )

    def create_index(
        self, name: str, mappings: Optional[Mappings] = None, settings: Optional[Dict[str, Any]] = None
    ) -> bool:
        index_name = self.format_index_name(name)
        kwargs: Dict[str, Any] = {}
        if mappings is not None:
            kwargs["mappings"] = mappings.to_dict()
        if settings is not None:
            kwargs["settings"] = settings
        try:
            response = self.es.indices.create(index=index_name, **kwargs)
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to create index {index_name}: {e}") from e
        return bool(_body(response).get("acknowledged", False))

    def update_index_mapping(self, name: str, mapping: Mappings) -> bool:
        index_name = self.format_index_name(name)
        try:
            response = self.es.indices.put_mapping(index=index_name, properties=mapping.properties)
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to update mapping of {index_name}: {e}") from e
        return bool(_body(response).get("acknowledged", False))

    def create_or_update_template(
        self, name: str, settings: Dict[str, Any], mapping: Mappings, order: int
    ) -> bool:
        template_name = self.format_index_name(name)
        try:
            response = self.es.indices.put_template(
                name=template_name,
                index_patterns=[f"{template_name}-*"],
                settings=settings,
                mappings=mapping.to_dict(),
                order=order,
            )
        except (ApiError, TransportError) as e:
            raise BackendIOError(f"Failed to put template {template_name}: {e}") from e
        return bool(_body(response).get("acknowledged", False))
