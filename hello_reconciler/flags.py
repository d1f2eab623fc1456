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

import argparse
import os
from datetime import timedelta
from typing import List, Mapping, Optional

from pydantic import BaseModel, Field

from reconciliation.config import settings


class Flags(BaseModel):
    log_level: str = "ERROR"
    database_url: str
    resync_period_seconds: float = Field(gt=0)
    retention_period_days: float = Field(ge=0)

    @property
    def resync_period(self) -> timedelta:
        return timedelta(seconds=self.resync_period_seconds)

    @property
    def retention_period(self) -> timedelta:
        return timedelta(days=self.retention_period_days)


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hello-reconciler", description="Reconciles user intent with system state")
    parser.add_argument(
        '--log-level',
        default=environ.get("LOG_LEVEL", "ERROR"),
        choices=['CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'],
        type=str.upper,
        help='Log level (env: LOG_LEVEL)',
    )
    database_url = environ.get("DATABASE_URL")
    parser.add_argument(
        '--database-url',
        default=database_url,
        required=database_url is None,
        help='SQLAlchemy async connection URL, including database name (env: DATABASE_URL)',
    )
    parser.add_argument(
        '--resync-period-seconds',
        type=float,
        default=float(environ.get("RESYNC_PERIOD_SECONDS", settings.default_resync_period_seconds)),
        help='Reconcile with this period even if nothing changed (env: RESYNC_PERIOD_SECONDS)',
    )
    parser.add_argument(
        '--retention-period-days',
        type=float,
        default=float(environ.get("RETENTION_PERIOD_DAYS", 3)),
        help='Hard delete soft deleted hellos older than this many days (env: RETENTION_PERIOD_DAYS)',
    )
    return parser


def parse_flags(argv: Optional[List[str]] = None, environ: Optional[Mapping[str, str]] = None) -> Flags:
    if environ is None:
        environ = os.environ
    args = build_parser(environ).parse_args(argv)
    return Flags(**vars(args))
