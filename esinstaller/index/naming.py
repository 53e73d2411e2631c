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
Physical naming of storage models

Without logic sharding, all metric models are stored in one shared physical
table and all regular records in another; rows of a shared table carry the
logical table name in METRIC_TABLE_NAME.
"""

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from esinstaller.model import Model

logger = logging.getLogger(__name__)

METRICS_ALL = "metrics-all"
RECORDS_ALL = "records-all"

_EPOCH = date(1970, 1, 1)


class LogicIndicesRegister:
    """Remembers which logical models live in which physical table"""

    METRIC_TABLE_NAME = "metric_table"

    def __init__(self):
        self._lock = threading.Lock()
        self._logic_to_physical: Dict[str, str] = {}

    def register_relation(self, logic_name: str, physical_name: str):
        with self._lock:
            self._logic_to_physical[logic_name] = physical_name

    def get_physical_table_name(self, logic_name: str) -> str:
        with self._lock:
            return self._logic_to_physical.get(logic_name, logic_name)

    def get_logic_table_names(self, physical_name: str) -> List[str]:
        with self._lock:
            return sorted(k for k, v in self._logic_to_physical.items() if v == physical_name)


class IndexController:
    def __init__(self, logic_sharding: bool = False):
        self.logic_sharding = logic_sharding

    def is_metric_model(self, model: Model) -> bool:
        return model.is_metric

    def get_table_name(self, model: Model) -> str:
        """Physical table of a model"""
        if self.logic_sharding:
            return model.name
        if self.is_metric_model(model):
            return METRICS_ALL
        if model.is_record and not model.is_super_dataset:
            return RECORDS_ALL
        return model.name


class TimeSeriesUtils:
    """Names the rolling indices of time series tables"""

    def __init__(self, index_controller: IndexController, day_step: int = 1,
                 clock: Optional[Callable[[], datetime]] = None):
        if day_step < 1:
            raise ValueError("day_step must be at least 1")
        self.index_controller = index_controller
        self.day_step = day_step
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def time_bucket(self, day: date) -> str:
        """yyyyMMdd of the first day of the day_step window containing day"""
        if self.day_step > 1:
            days = (day - _EPOCH).days
            day = _EPOCH + timedelta(days=days - days % self.day_step)
        return day.strftime("%Y%m%d")

    def write_index_name(self, model: Model, day: date) -> str:
        return f"{self.index_controller.get_table_name(model)}-{self.time_bucket(day)}"

    def latest_write_index_name(self, model: Model) -> str:
        """Index receiving writes of a time series model right now"""
        return self.write_index_name(model, self._clock().date())
