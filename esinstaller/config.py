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
import os
import re
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from esinstaller.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SW_STORAGE_ES_"
_ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

DEFAULT_OAP_ANALYZER = '{"analyzer":{"oap_analyzer":{"type":"stop"}}}'
DEFAULT_OAP_LOG_ANALYZER = '{"analyzer":{"oap_log_analyzer":{"type":"standard"}}}'


class StorageConfig(BaseModel):
    """Elasticsearch storage plugin configuration"""

    hosts: List[str] = Field(default_factory=lambda: ["http://localhost:9200"], description="Cluster nodes")
    namespace: str = Field("", description="Prefix of every physical index and template name")
    username: Optional[str] = Field(None, description="Basic auth user")
    password: Optional[str] = Field(None, description="Basic auth password")
    request_timeout: int = Field(30, ge=1, description="Request timeout in seconds")
    logic_sharding: bool = Field(False, description="Give every model its own physical table")
    index_shards_number: int = Field(1, ge=1, description="Shards of a regular index")
    index_replicas_number: int = Field(1, ge=0, description="Replicas of a regular index")
    super_dataset_index_shards_factor: int = Field(5, ge=1, description="Shard multiplier of super datasets")
    super_dataset_index_replicas_number: int = Field(0, ge=0, description="Replicas of super dataset indices")
    flush_interval: int = Field(15, ge=0, description="Bulk flush interval in seconds")
    index_template_order: int = Field(0, description="Order of the generated index templates")
    day_step: int = Field(1, ge=1, description="Days covered by one time series index")
    advanced: str = Field("", description="JSON object of extra index settings, applied last")
    oap_analyzer: str = Field(DEFAULT_OAP_ANALYZER, description="Analysis settings of oap_analyzer")
    oap_log_analyzer: str = Field(DEFAULT_OAP_LOG_ANALYZER, description="Analysis settings of oap_log_analyzer")


def _resolve_env_reference(match: "re.Match") -> str:
    return os.environ.get(match.group(1), match.group(0))


def _replace_env_vars(value: Any) -> Any:
    """
    Resolve ${VAR} references in every string of a parsed YAML document

    References may be embedded, e.g. ``http://${ES_HOST}:9200``. Unset
    variables are left as written.
    """
    if isinstance(value, str):
        return _ENV_REFERENCE.sub(_resolve_env_reference, value)
    if isinstance(value, dict):
        return {key: _replace_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_replace_env_vars(item) for item in value]
    return value


def _env_overrides() -> Dict[str, Any]:
    overrides = {}
    for name in StorageConfig.model_fields:
        value = os.environ.get(ENV_PREFIX + name.upper())
        if value is None:
            continue
        if name == "hosts":
            overrides[name] = [h.strip() for h in value.split(",") if h.strip()]
        else:
            overrides[name] = value
    return overrides


def load_config(path: Optional[str] = None) -> StorageConfig:
    """
    Load storage configuration

    Values come from the optional YAML file first (``${VAR}`` strings are
    resolved from the environment), then SW_STORAGE_ES_* environment
    variables override them.
    """
    raw: Dict[str, Any] = {}
    if path:
        logger.info(f"Loading storage configuration from {path}")
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {path} must contain a mapping")
        raw = _replace_env_vars(raw)
    raw.update(_env_overrides())

    try:
        return StorageConfig(**raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid storage configuration: {e}") from e
