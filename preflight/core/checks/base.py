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
Base check interface for image certification policy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..check_policy import CheckPolicy
from ..image import ImageReference
from ..models import HelpText, Metadata


class BaseCheck(ABC):
    """Abstract base class for all policy checks.

    A check is a stateless policy unit: it may keep the policy it was built
    with, but nothing from one ``validate`` call may influence the next.
    """

    def __init__(self, policy: CheckPolicy | None = None):
        """
        Initialize check.

        Args:
            policy: Check policy for thresholds and signals.
                If None, loads built-in defaults.
        """
        self.policy = policy or CheckPolicy.default()

    @abstractmethod
    def validate(self, image: ImageReference) -> bool:
        """
        Evaluate *image* against this policy.

        Args:
            image: The fully-resolved image to evaluate

        Returns:
            True if the image satisfies the policy, False if it does not

        Raises:
            CheckEvaluationError: If a verdict could not be reached
        """
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Stable identifier, unique within an engine."""
        pass

    @abstractmethod
    def get_metadata(self) -> Metadata:
        pass

    @abstractmethod
    def get_help(self) -> HelpText:
        """Remediation shown when the check fails or errors."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.get_name()}>"
