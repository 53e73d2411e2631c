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
Analysis settings for full-text (match query) columns

Every analyzer kind a column may reference has exactly one generator in
ANALYZER_GENERATORS. A generator reads the analyzer definition from the
storage configuration and returns an AnalyzerSetting; the settings of all
match-query columns of a model are combined into the ``analysis`` section of
the index settings.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable

from esinstaller.config import StorageConfig
from esinstaller.exceptions import ConfigurationError, UnknownAnalyzerError
from esinstaller.model import AnalyzerType, Column

logger = logging.getLogger(__name__)

SECTIONS = ("analyzer", "tokenizer", "char_filter", "filter")


@dataclass
class AnalyzerSetting:
    analyzer: Dict[str, Any] = field(default_factory=dict)
    tokenizer: Dict[str, Any] = field(default_factory=dict)
    char_filter: Dict[str, Any] = field(default_factory=dict)
    filter: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, text: str, source: str) -> "AnalyzerSetting":
        try:
            raw = json.loads(text)
        except ValueError as e:
            raise ConfigurationError(f"Invalid analyzer setting in {source}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Analyzer setting in {source} must be a JSON object")
        unknown = set(raw) - set(SECTIONS)
        if unknown:
            raise ConfigurationError(f"Unknown analysis sections {sorted(unknown)} in {source}")
        return cls(**{name: dict(raw.get(name) or {}) for name in SECTIONS})

    def combine(self, other: "AnalyzerSetting") -> "AnalyzerSetting":
        """Merge other into self, entries of other win on name clashes"""
        for name in SECTIONS:
            getattr(self, name).update(getattr(other, name))
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {name: dict(getattr(self, name)) for name in SECTIONS}


def _oap_analyzer(config: StorageConfig) -> AnalyzerSetting:
    return AnalyzerSetting.from_json(config.oap_analyzer, "oap_analyzer")


def _oap_log_analyzer(config: StorageConfig) -> AnalyzerSetting:
    return AnalyzerSetting.from_json(config.oap_log_analyzer, "oap_log_analyzer")


ANALYZER_GENERATORS: Dict[AnalyzerType, Callable[[StorageConfig], AnalyzerSetting]] = {
    AnalyzerType.OAP_ANALYZER: _oap_analyzer,
    AnalyzerType.OAP_LOG_ANALYZER: _oap_log_analyzer,
}


def get_generator(analyzer) -> Callable[[StorageConfig], AnalyzerSetting]:
    generator = ANALYZER_GENERATORS.get(analyzer)
    if generator is None:
        raise UnknownAnalyzerError(analyzer)
    return generator


def generate_analyzer_setting(columns: Iterable[Column], config: StorageConfig) -> AnalyzerSetting:
    """Combined analysis settings of every match-query column"""
    setting = AnalyzerSetting()
    for column in columns:
        if not column.need_match_query:
            continue
        setting.combine(get_generator(column.analyzer)(config))
    return setting
