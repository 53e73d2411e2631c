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

import json
import logging
from typing import Any, Dict

from esinstaller.config import StorageConfig
from esinstaller.exceptions import ConfigurationError
from esinstaller.model import Model
from esinstaller.schema.analyzer import generate_analyzer_setting

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL = 5


def refresh_interval_seconds(flush_interval: int) -> int:
    """
    Refresh interval for a given bulk flush interval

    At most one bulk flush may land in a refresh window: 2/3 of the flush
    interval, floored to 5 seconds.
    """
    return max(flush_interval * 2 // 3, MIN_REFRESH_INTERVAL)


def parse_advanced_settings(advanced: str) -> Dict[str, Any]:
    if not advanced or not advanced.strip():
        return {}
    try:
        settings = json.loads(advanced)
    except ValueError as e:
        raise ConfigurationError(f"Invalid advanced index settings: {e}") from e
    if not isinstance(settings, dict):
        raise ConfigurationError("Advanced index settings must be a JSON object")
    return settings


class SettingsBuilder:
    def __init__(self, config: StorageConfig):
        self.config = config

    def create_settings(self, model: Model) -> Dict[str, Any]:
        config = self.config
        settings: Dict[str, Any] = {}
        if model.is_super_dataset:
            settings["index.number_of_replicas"] = config.super_dataset_index_replicas_number
            settings["index.number_of_shards"] = (
                config.index_shards_number * config.super_dataset_index_shards_factor
            )
        else:
            settings["index.number_of_replicas"] = config.index_replicas_number
            settings["index.number_of_shards"] = config.index_shards_number

        settings["index.refresh_interval"] = f"{refresh_interval_seconds(config.flush_interval)}s"
        settings["analysis"] = generate_analyzer_setting(model.columns, config).to_dict()

        # operator overrides win, even below the refresh floor
        settings.update(parse_advanced_settings(config.advanced))
        return settings
