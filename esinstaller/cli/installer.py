#!/usr/bin/env python3
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
CLI tool for installing storage models into Elasticsearch

Usage:
    python -m esinstaller.cli.installer --help
    python -m esinstaller.cli.installer plan --models models.yaml
    python -m esinstaller.cli.installer reconcile --models models.yaml --config storage.yaml
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import dotenv

from esinstaller.config import StorageConfig, load_config
from esinstaller.exceptions import ConfigurationError, InternalConsistencyError
from esinstaller.index.naming import IndexController, TimeSeriesUtils
from esinstaller.model import Model, load_models
from esinstaller.schema.mapping import MappingBuilder
from esinstaller.schema.settings import SettingsBuilder

logger = logging.getLogger(__name__)


def build_plan(models: List[Model], config: StorageConfig) -> List[dict]:
    """Computed table layout of every model, without contacting the backend"""
    index_controller = IndexController(logic_sharding=config.logic_sharding)
    time_series_utils = TimeSeriesUtils(index_controller, day_step=config.day_step)
    mapping_builder = MappingBuilder(index_controller)
    settings_builder = SettingsBuilder(config)

    plan = []
    for model in models:
        entry = {
            "model": model.name,
            "table": index_controller.get_table_name(model),
            "time_series": model.is_time_series,
            "mappings": mapping_builder.create_mapping(model).to_dict(),
            "settings": settings_builder.create_settings(model),
        }
        if model.is_time_series:
            entry["write_index"] = time_series_utils.latest_write_index_name(model)
        plan.append(entry)
    return plan


def show_plan(models_path: str, config_path: Optional[str]):
    config = load_config(config_path)
    models = load_models(models_path)
    print(json.dumps(build_plan(models, config), indent=2, ensure_ascii=False))


def run_reconciliation(models_path: str, config_path: Optional[str]) -> int:
    from esinstaller.client.elasticsearch_client import ElasticsearchStorageClient
    from esinstaller.index.installer import StorageEsInstaller

    config = load_config(config_path)
    models = load_models(models_path)
    client = ElasticsearchStorageClient.from_config(config)
    try:
        installer = StorageEsInstaller(client, config)
        logger.info(f"Starting reconciliation of {len(models)} models...")
        failures = installer.reconcile_all(models)
    finally:
        client.close()

    if failures:
        for name, error in failures.items():
            print(f"- {name}: {error}")
        return 1
    logger.info("Reconciliation completed")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    dotenv.load_dotenv(".env")

    parser = argparse.ArgumentParser(description="Elasticsearch storage installer CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("plan", "Print computed mappings and settings"),
        ("reconcile", "Create or update indices and templates"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--models", required=True, help="YAML file with model definitions")
        sub.add_argument("--config", help="YAML storage configuration file")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "plan":
            show_plan(args.models, args.config)
        elif args.command == "reconcile":
            return run_reconciliation(args.models, args.config)
    except (ConfigurationError, InternalConsistencyError) as e:
        logger.error(f"Command failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
