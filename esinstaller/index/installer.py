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
Storage installer for Elasticsearch

Brings the physical indices and templates of the backend in line with the
storage models at startup. Two table kinds are handled:

- Static tables live in one index. A missing index is created with the
  computed settings and mapping; an existing one only ever gets the fields it
  lacks appended.
- Time series tables are a template plus rolling daily indices. The template
  is created or updated whenever it does not contain the model's mapping, and
  the current write index is then created bare (inheriting the template) or
  given the fields it lacks.

Nothing is ever removed or retyped, and settings are only applied at creation.
"""

import logging
from typing import Dict, Iterable, Optional

from esinstaller.client.base import ElasticSearchClient, IndexTemplate
from esinstaller.config import StorageConfig
from esinstaller.exceptions import BackendIOError, InternalConsistencyError, StorageException
from esinstaller.index.naming import IndexController, LogicIndicesRegister, TimeSeriesUtils
from esinstaller.model import Model
from esinstaller.schema.mapping import MappingBuilder, Mappings
from esinstaller.schema.settings import SettingsBuilder
from esinstaller.schema.structures import IndexStructures, diff_mappings

logger = logging.getLogger(__name__)

OP_CREATE_INDEX = "create_index"
OP_UPDATE_MAPPING = "update_index_mapping"
OP_CREATE_TEMPLATE = "create_or_update_template"

_FAILURE_MESSAGES = {
    OP_CREATE_INDEX: "cannot create {table} index",
    OP_UPDATE_MAPPING: "cannot update {table} index mapping",
    OP_CREATE_TEMPLATE: "cannot create {table} index template",
}


def _wrap_backend_error(error: BackendIOError, table: str, operation: str) -> StorageException:
    message = _FAILURE_MESSAGES[operation].format(table=table)
    return StorageException(f"{message}: {error}", table=table, operation=operation)


class StorageEsInstaller:
    def __init__(
        self,
        client: ElasticSearchClient,
        config: StorageConfig,
        structures: Optional[IndexStructures] = None,
        index_controller: Optional[IndexController] = None,
        logic_indices_register: Optional[LogicIndicesRegister] = None,
        time_series_utils: Optional[TimeSeriesUtils] = None,
    ):
        self.client = client
        self.config = config
        self.structures = structures or IndexStructures()
        self.index_controller = index_controller or IndexController(logic_sharding=config.logic_sharding)
        self.logic_indices_register = logic_indices_register or LogicIndicesRegister()
        self.time_series_utils = time_series_utils or TimeSeriesUtils(
            self.index_controller, day_step=config.day_step
        )
        self.mapping_builder = MappingBuilder(self.index_controller)
        self.settings_builder = SettingsBuilder(config)

    def create_mapping(self, model: Model) -> Mappings:
        return self.mapping_builder.create_mapping(model)

    def create_settings(self, model: Model) -> Dict:
        return self.settings_builder.create_settings(model)

    def reconcile(self, model: Model):
        """
        Make the backend ready to store the model

        Raises:
            StorageException: a create or update call failed or was not acknowledged
            InternalConsistencyError: the client contradicts itself about the template
            ConfigurationError: the model cannot be mapped
        """
        table_name = self.index_controller.get_table_name(model)
        self.logic_indices_register.register_relation(model.name, table_name)
        self.create_table(model)

    def create_table(self, model: Model):
        """Create or extend the physical table of the model, without registering it"""
        table_name = self.index_controller.get_table_name(model)
        if model.is_time_series:
            self._create_time_series_table(model, table_name)
        else:
            self._create_normal_table(model, table_name)

    def reconcile_all(self, models: Iterable[Model]) -> Dict[str, StorageException]:
        """
        Reconcile every model, a failed model does not stop the others

        Returns:
            Failures keyed by model name
        """
        failures: Dict[str, StorageException] = {}
        count = 0
        for model in models:
            count += 1
            try:
                self.reconcile(model)
            except StorageException as e:
                logger.error(f"Failed to reconcile model {model.name}: {e}")
                failures[model.name] = e
        logger.info(f"Reconciled {count} models, {len(failures)} failed")
        return failures

    def is_exists(self, model: Model) -> bool:
        """Whether the backend already holds a compatible table for the model"""
        table_name = self.index_controller.get_table_name(model)
        mapping = self.create_mapping(model)
        if not model.is_time_series:
            if not self.client.is_exists_index(table_name):
                return False
            self.structures.put_structure(table_name, self._get_live_mapping(table_name))
            return self.structures.contains_structure(table_name, mapping)

        template = self._get_template(table_name)
        index_name = self.time_series_utils.latest_write_index_name(model)
        if template is None or not self.client.is_exists_index(index_name):
            return False
        self.structures.put_structure(table_name, template.mappings)
        return self.structures.contains_structure(table_name, mapping)

    def _get_live_mapping(self, index_name: str) -> Mappings:
        index = self.client.get_index(index_name)
        return index.mappings if index is not None else Mappings()

    def _get_template(self, table_name: str) -> Optional[IndexTemplate]:
        template_exists = self.client.is_exists_template(table_name)
        template = self.client.get_template(table_name)
        if template_exists != (template is not None):
            raise InternalConsistencyError(
                f"Elasticsearch client returned inconsistent results for template {table_name}: "
                f"exists={template_exists}, fetched={template is not None}"
            )
        return template

    def _create_normal_table(self, model: Model, table_name: str):
        mapping = self.create_mapping(model)
        operation = OP_CREATE_INDEX
        try:
            if not self.client.is_exists_index(table_name):
                settings = self.create_settings(model)
                is_acknowledged = self.client.create_index(table_name, mapping, settings)
                logger.info(f"create {table_name} index finished, isAcknowledged: {is_acknowledged}")
                if not is_acknowledged:
                    raise StorageException(
                        f"create {table_name} index failure", table=table_name, operation=OP_CREATE_INDEX
                    )
                self.structures.put_structure(table_name, mapping)
                return

            operation = OP_UPDATE_MAPPING
            history_mapping = self._get_live_mapping(table_name)
            self.structures.put_structure(table_name, history_mapping)
            merged_mapping = self.structures.merge_structure(table_name, mapping)
            append_mapping = diff_mappings(merged_mapping, history_mapping)
            if append_mapping.is_empty():
                logger.debug(f"{table_name} index is up to date")
                return

            is_acknowledged = self.client.update_index_mapping(table_name, append_mapping)
            logger.info(
                f"update {table_name} index finished, isAcknowledged: {is_acknowledged}, "
                f"append mappings: {append_mapping.to_dict()}"
            )
            if not is_acknowledged:
                raise StorageException(
                    f"update {table_name} index failure", table=table_name, operation=OP_UPDATE_MAPPING
                )
            self.structures.put_structure(table_name, merged_mapping)
        except BackendIOError as e:
            raise _wrap_backend_error(e, table_name, operation) from e

    def _create_time_series_table(self, model: Model, table_name: str):
        settings = self.create_settings(model)
        mapping = self.create_mapping(model)
        index_name = self.time_series_utils.latest_write_index_name(model)
        failed_table, operation = table_name, OP_CREATE_TEMPLATE
        try:
            template = self._get_template(table_name)
            if template is not None:
                self.structures.put_structure(table_name, template.mappings)
                # fields known under another type are kept as they are, only new names count
                if self.structures.missing_structure(table_name, mapping).is_empty():
                    logger.debug(f"{table_name} index template is up to date")
                    return

            merged_mapping = self.structures.merge_structure(table_name, mapping)
            is_acknowledged = self.client.create_or_update_template(
                table_name, settings, merged_mapping, self.config.index_template_order
            )
            logger.info(f"create {table_name} index template finished, isAcknowledged: {is_acknowledged}")
            if not is_acknowledged:
                raise StorageException(
                    f"create {table_name} index template failure", table=table_name, operation=OP_CREATE_TEMPLATE
                )
            self.structures.put_structure(table_name, merged_mapping)

            failed_table, operation = index_name, OP_CREATE_INDEX
            if self.client.is_exists_index(index_name):
                operation = OP_UPDATE_MAPPING
                history_mapping = self._get_live_mapping(index_name)
                append_mapping = self.structures.diff_structure(table_name, history_mapping)
                if append_mapping.is_empty():
                    return
                is_acknowledged = self.client.update_index_mapping(index_name, append_mapping)
                logger.info(
                    f"update {index_name} index finished, isAcknowledged: {is_acknowledged}, "
                    f"append mappings: {append_mapping.to_dict()}"
                )
                if not is_acknowledged:
                    raise StorageException(
                        f"update {index_name} time series index failure",
                        table=index_name,
                        operation=OP_UPDATE_MAPPING,
                    )
            else:
                is_acknowledged = self.client.create_index(index_name)
                logger.info(f"create {index_name} index finished, isAcknowledged: {is_acknowledged}")
                if not is_acknowledged:
                    raise StorageException(
                        f"create {index_name} time series index failure",
                        table=index_name,
                        operation=OP_CREATE_INDEX,
                    )
        except BackendIOError as e:
            raise _wrap_backend_error(e, failed_table, operation) from e
