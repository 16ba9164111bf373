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
Data models for check metadata and evaluation results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class Outcome(str, Enum):
    """Outcome of evaluating one check against one image."""

    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


class Level(str, Enum):
    """Certification tier a check belongs to."""

    REQUIRED = "required"
    BEST = "best"
    GOOD = "good"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class Metadata:
    """Static description of a check."""

    description: str
    level: Level
    knowledge_base_url: str = ""
    check_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "level": self.level.value,
            "knowledge_base_url": self.knowledge_base_url,
            "check_url": self.check_url,
        }


@dataclass(frozen=True)
class HelpText:
    """Remediation guidance shown when a check fails or errors."""

    message: str
    suggestion: str

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "suggestion": self.suggestion}


@dataclass
class CheckResult:
    """Outcome of a single check against a single image."""

    check_name: str
    outcome: Outcome
    metadata: Metadata
    help: HelpText | None = None
    error: str | None = None  # Present only when outcome is ERROR
    cause: BaseException | None = field(default=None, repr=False, compare=False)
    elapsed_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.outcome == Outcome.PASS

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        data: dict[str, Any] = {
            "name": self.check_name,
            "outcome": self.outcome.value,
            "elapsed_seconds": self.elapsed_seconds,
            "metadata": self.metadata.to_dict(),
        }
        if self.help is not None:
            data["help"] = self.help.to_dict()
        if self.outcome == Outcome.ERROR:
            data["error"] = self.error
        return data


@dataclass
class ImageResults:
    """Results from running every registered check against one image."""

    image: str
    results: list[CheckResult] = field(default_factory=list)
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def passed(self) -> list[CheckResult]:
        return [r for r in self.results if r.outcome == Outcome.PASS]

    @property
    def failed(self) -> list[CheckResult]:
        return [r for r in self.results if r.outcome == Outcome.FAIL]

    @property
    def errors(self) -> list[CheckResult]:
        return [r for r in self.results if r.outcome == Outcome.ERROR]

    @property
    def is_passing(self) -> bool:
        """True when every check passed."""
        return all(r.outcome == Outcome.PASS for r in self.results)

    def get(self, check_name: str) -> CheckResult | None:
        """Look up the result for *check_name*."""
        for result in self.results:
            if result.check_name == check_name:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert image results to dictionary."""
        return {
            "image": self.image,
            "passed": self.is_passing,
            "duration_seconds": self.duration_seconds,
            "timestamp": self.timestamp.isoformat(),
            "summary": {
                "total": len(self.results),
                "passed": len(self.passed),
                "failed": len(self.failed),
                "errors": len(self.errors),
            },
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class Report:
    """Aggregated report from checking one or more images."""

    image_results: list[ImageResults] = field(default_factory=list)
    total_images_checked: int = 0
    passing_images: int = 0
    passed_count: int = 0
    failed_count: int = 0
    error_count: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def add_image_results(self, results: ImageResults):
        """Add the results for one image and update counters."""
        self.image_results.append(results)
        self.total_images_checked += 1
        self.passed_count += len(results.passed)
        self.failed_count += len(results.failed)
        self.error_count += len(results.errors)

        if results.is_passing:
            self.passing_images += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "summary": {
                "total_images_checked": self.total_images_checked,
                "passing_images": self.passing_images,
                "checks_by_outcome": {
                    "passed": self.passed_count,
                    "failed": self.failed_count,
                    "errors": self.error_count,
                },
                "timestamp": self.timestamp.isoformat(),
            },
            "results": [r.to_dict() for r in self.image_results],
        }
