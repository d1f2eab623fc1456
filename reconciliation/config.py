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
from typing import Mapping, Optional

import dotenv
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "RECONCILIATION_"

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseModel):
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    default_resync_period_seconds: float = Field(default=5.0, gt=0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level: {value}")
        return value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from RECONCILIATION_* variables, loading .env when reading os.environ"""
        if environ is None:
            dotenv.load_dotenv(".env")
            environ = os.environ

        values = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        return cls(**values)


settings = Settings.from_env()


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None):
    """Configure the root logger for processes embedding the runtime"""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=fmt or settings.log_format)
