"""
In-memory ElasticSearchClient for installer tests.

Behaves like a cluster for the calls the installer makes: bare indices take
their mapping from the template whose ``{name}-*`` pattern they match, and
mapping updates append fields. Every mutating call is recorded in ``calls``.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from esinstaller.client.base import ElasticSearchClient, Index, IndexTemplate
from esinstaller.exceptions import BackendIOError
from esinstaller.schema.mapping import Mappings

FIXED_NOW = datetime(2024, 3, 15, 10, 30, tzinfo=timezone.utc)


class FakeElasticSearchClient(ElasticSearchClient):
    def __init__(self):
        self.indices: Dict[str, Index] = {}
        self.templates: Dict[str, IndexTemplate] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        # operation name -> acknowledged flag returned by the next calls
        self.acknowledge: Dict[str, bool] = {}
        # operation name -> error raised by the next calls
        self.errors: Dict[str, Exception] = {}
        # when set, is_exists_template answers this regardless of state
        self.template_exists_override: Optional[bool] = None

    def _check(self, operation: str) -> bool:
        if operation in self.errors:
            raise self.errors[operation]
        return self.acknowledge.get(operation, True)

    def is_exists_index(self, name: str) -> bool:
        if "is_exists_index" in self.errors:
            raise self.errors["is_exists_index"]
        return name in self.indices

    def get_index(self, name: str) -> Optional[Index]:
        index = self.indices.get(name)
        if index is None:
            return None
        return Index(name=name, mappings=index.mappings.copy(), settings=dict(index.settings))

    def is_exists_template(self, name: str) -> bool:
        if "is_exists_template" in self.errors:
            raise self.errors["is_exists_template"]
        if self.template_exists_override is not None:
            return self.template_exists_override
        return name in self.templates

    def get_template(self, name: str) -> Optional[IndexTemplate]:
        template = self.templates.get(name)
        if template is None:
            return None
        return IndexTemplate(
            name=name, settings=dict(template.settings), mappings=template.mappings.copy(), order=template.order
        )

    def create_index(
        self, name: str, mappings: Optional[Mappings] = None, settings: Optional[Dict[str, Any]] = None
    ) -> bool:
        self.calls.append(("create_index", name, mappings.copy() if mappings is not None else None))
        if not self._check("create_index"):
            return False
        if mappings is None and settings is None:
            for template_name, template in self.templates.items():
                if name.startswith(template_name + "-"):
                    mappings, settings = template.mappings.copy(), dict(template.settings)
                    break
        self.indices[name] = Index(
            name=name,
            mappings=mappings.copy() if mappings is not None else Mappings(),
            settings=dict(settings or {}),
        )
        return True

    def update_index_mapping(self, name: str, mapping: Mappings) -> bool:
        self.calls.append(("update_index_mapping", name, mapping.copy()))
        if not self._check("update_index_mapping"):
            return False
        if name not in self.indices:
            raise BackendIOError(f"no such index [{name}]")
        self.indices[name].mappings.properties.update(mapping.copy().properties)
        return True

    def create_or_update_template(
        self, name: str, settings: Dict[str, Any], mapping: Mappings, order: int
    ) -> bool:
        self.calls.append(("create_or_update_template", name, mapping.copy()))
        if not self._check("create_or_update_template"):
            return False
        self.templates[name] = IndexTemplate(name=name, settings=dict(settings), mappings=mapping.copy(), order=order)
        return True
