"""
Shared fixtures for installer unit tests.
"""

import pytest

from esinstaller.config import StorageConfig
from esinstaller.index.installer import StorageEsInstaller
from esinstaller.index.naming import IndexController, TimeSeriesUtils
from tests.unit_test.fake_client import FIXED_NOW, FakeElasticSearchClient


@pytest.fixture
def config():
    return StorageConfig(
        logic_sharding=True,
        index_shards_number=3,
        index_replicas_number=1,
        super_dataset_index_shards_factor=2,
        super_dataset_index_replicas_number=0,
        flush_interval=15,
    )


@pytest.fixture
def fake_client():
    return FakeElasticSearchClient()


@pytest.fixture
def installer(fake_client, config):
    index_controller = IndexController(logic_sharding=config.logic_sharding)
    time_series_utils = TimeSeriesUtils(index_controller, clock=lambda: FIXED_NOW)
    return StorageEsInstaller(
        fake_client,
        config,
        index_controller=index_controller,
        time_series_utils=time_series_utils,
    )
