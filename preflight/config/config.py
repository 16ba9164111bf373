# Copyright 2026 Cisco Systems, Inc.
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
#
# SPDX-License-Identifier: Apache-2.0


"""
Configuration class for Preflight.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from .constants import PreflightConstants


@dataclass
class Config:
    """
    Runtime configuration for Preflight.

    Explicit arguments win; anything left at its default is taken from the
    environment when the matching variable is set.
    """

    # Engine
    check_timeout_seconds: float | None = PreflightConstants.DEFAULT_CHECK_TIMEOUT
    parallel_checks: bool = False

    # Policy
    policy_path: str | None = None

    # Logging
    log_file: str | None = PreflightConstants.DEFAULT_LOG_FILE
    log_level: str = PreflightConstants.DEFAULT_LOG_LEVEL

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if self.check_timeout_seconds == PreflightConstants.DEFAULT_CHECK_TIMEOUT:
            if env_timeout := os.getenv("PREFLIGHT_CHECK_TIMEOUT"):
                try:
                    self.check_timeout_seconds = float(env_timeout)
                except ValueError:
                    raise ValueError(f"PREFLIGHT_CHECK_TIMEOUT must be a number, got {env_timeout!r}")

        # 0 disables the timeout
        if not self.check_timeout_seconds:
            self.check_timeout_seconds = None

        if os.getenv("PREFLIGHT_PARALLEL", "").lower() in ("true", "1"):
            self.parallel_checks = True

        if self.policy_path is None:
            self.policy_path = os.getenv("PREFLIGHT_POLICY") or None

        if self.log_file == PreflightConstants.DEFAULT_LOG_FILE:
            env_log_file = os.getenv("PREFLIGHT_LOG_FILE")
            if env_log_file is not None:
                # An empty value disables the log file
                self.log_file = env_log_file or None

        if self.log_level == PreflightConstants.DEFAULT_LOG_LEVEL:
            if env_level := os.getenv("PREFLIGHT_LOG_LEVEL"):
                self.log_level = env_level.upper()

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> "Config":
        """
        Load configuration from .env file.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if config_file.exists():
            with open(config_file) as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        key, value = line.split("=", 1)
                        os.environ[key.strip()] = value.strip()

        return cls.from_env()
