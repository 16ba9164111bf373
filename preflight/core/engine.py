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
Check engine: runs every registered check against an image and aggregates
the outcomes.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from collections import Counter
from collections.abc import Iterable, Sequence

from ..config.config import Config
from ..config.constants import PreflightConstants
from .check_factory import build_checks
from .check_policy import CheckPolicy
from .checks.base import BaseCheck
from .exceptions import CheckTimeoutError, ConfigurationError
from .image import ImageReference
from .models import CheckResult, HelpText, ImageResults, Level, Metadata, Outcome, Report

logger = logging.getLogger(__name__)


class CheckEngine:
    """Runs an ordered set of checks against images.

    Results always come back in registration order with exactly one entry
    per check.  A check that raises, returns something other than a bool,
    or exceeds the timeout produces an ERROR result; it never prevents the
    remaining checks from being recorded.
    """

    def __init__(
        self,
        checks: Sequence[BaseCheck] | None = None,
        policy: CheckPolicy | None = None,
        timeout_seconds: float | None = PreflightConstants.DEFAULT_CHECK_TIMEOUT,
        parallel: bool = False,
    ):
        """
        Initialize engine with checks.

        Args:
            checks: Checks to run, in report order.  If None, builds the
                checks enabled by *policy*.
            policy: Check policy used when *checks* is None.
                If None, loads built-in defaults.
            timeout_seconds: Per-check time limit.  None or 0 disables it.
            parallel: Run all checks concurrently instead of one at a time.

        Raises:
            ConfigurationError: If two checks share a name.
        """
        self.policy = policy or CheckPolicy.default()
        self.checks: list[BaseCheck] = list(checks) if checks is not None else build_checks(self.policy)
        self.timeout_seconds = timeout_seconds or None
        self.parallel = parallel

        duplicates = sorted(name for name, count in Counter(self.get_check_names()).items() if count > 1)
        if duplicates:
            raise ConfigurationError(f"Duplicate check names: {', '.join(duplicates)}")

    @classmethod
    def from_config(
        cls, config: Config, checks: Sequence[BaseCheck] | None = None, policy: CheckPolicy | None = None
    ) -> CheckEngine:
        """Build an engine using the timeout and parallelism from *config*."""
        if policy is None and config.policy_path:
            policy = CheckPolicy.from_yaml(config.policy_path)
        return cls(
            checks=checks,
            policy=policy,
            timeout_seconds=config.check_timeout_seconds,
            parallel=config.parallel_checks,
        )

    def get_check_names(self) -> list[str]:
        return [check.get_name() for check in self.checks]

    def run(self, image: ImageReference) -> ImageResults:
        """
        Run every registered check against a single image.

        Args:
            image: Fully-resolved image reference

        Returns:
            ImageResults with one CheckResult per check, in registration order
        """
        start_time = time.time()
        logger.info("Running %d checks against %s", len(self.checks), image.image_uri)

        if self.parallel:
            results = self._run_parallel(image)
        else:
            results = self._run_sequential(image)

        image_results = ImageResults(
            image=image.image_uri,
            results=results,
            duration_seconds=time.time() - start_time,
        )
        logger.info(
            "%s: %d passed, %d failed, %d errors",
            image.image_uri,
            len(image_results.passed),
            len(image_results.failed),
            len(image_results.errors),
        )
        return image_results

    def run_many(self, images: Iterable[ImageReference]) -> Report:
        """Run every registered check against each image in turn."""
        report = Report()
        for image in images:
            report.add_image_results(self.run(image))
        return report

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _run_sequential(self, image: ImageReference) -> list[CheckResult]:
        results = []
        for check in self.checks:
            submitted_at = time.monotonic()
            future = self._submit(check, image)
            results.append(self._collect(check, future, submitted_at))
        return results

    def _run_parallel(self, image: ImageReference) -> list[CheckResult]:
        submitted_at = time.monotonic()
        futures = [self._submit(check, image) for check in self.checks]
        return [self._collect(check, future, submitted_at) for check, future in zip(self.checks, futures)]

    @staticmethod
    def _submit(check: BaseCheck, image: ImageReference) -> concurrent.futures.Future:
        """Start ``check.validate(image)`` on a daemon thread.

        A check stuck past its timeout is abandoned; being a daemon, its
        thread does not keep the interpreter alive at exit.
        """
        future: concurrent.futures.Future = concurrent.futures.Future()

        def _target() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(check.validate(image))
            except BaseException as e:
                future.set_exception(e)

        threading.Thread(target=_target, name=f"preflight-check-{check.get_name()}", daemon=True).start()
        return future

    def _collect(self, check: BaseCheck, future: concurrent.futures.Future, submitted_at: float) -> CheckResult:
        """Wait for *future* within the check's deadline and turn it into a result."""
        timeout = None
        if self.timeout_seconds is not None:
            timeout = max(0.0, submitted_at + self.timeout_seconds - time.monotonic())

        try:
            verdict = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as e:
            if future.done():
                # The check raised TimeoutError itself
                return self._error_result(check, e, submitted_at)
            future.cancel()
            timeout_error = CheckTimeoutError(f"Check {check.get_name()} did not finish within {self.timeout_seconds}s")
            return self._error_result(check, timeout_error, submitted_at)
        except KeyboardInterrupt:
            raise
        except BaseException as e:
            # SystemExit and friends from a check end that check only
            return self._error_result(check, e, submitted_at)

        elapsed = time.monotonic() - submitted_at
        if verdict is True:
            logger.info("check completed: %s: PASSED", check.get_name())
            return CheckResult(
                check_name=check.get_name(),
                outcome=Outcome.PASS,
                metadata=self._metadata(check),
                elapsed_seconds=elapsed,
            )
        if verdict is False:
            logger.info("check completed: %s: FAILED", check.get_name())
            return CheckResult(
                check_name=check.get_name(),
                outcome=Outcome.FAIL,
                metadata=self._metadata(check),
                help=self._help(check),
                elapsed_seconds=elapsed,
            )

        return self._error_result(
            check, TypeError(f"validate() returned {type(verdict).__name__}, expected bool"), submitted_at
        )

    # ------------------------------------------------------------------
    # Result construction
    # ------------------------------------------------------------------

    def _error_result(self, check: BaseCheck, error: BaseException, submitted_at: float) -> CheckResult:
        logger.warning("check completed: %s: ERROR: %s", check.get_name(), error)
        return CheckResult(
            check_name=check.get_name(),
            outcome=Outcome.ERROR,
            metadata=self._metadata(check),
            help=self._help(check),
            error=str(error) or type(error).__name__,
            cause=error,
            elapsed_seconds=time.monotonic() - submitted_at,
        )

    @staticmethod
    def _metadata(check: BaseCheck) -> Metadata:
        try:
            return check.get_metadata()
        except Exception as e:
            logger.error("Check %s failed to describe itself: %s", check.get_name(), e)
            return Metadata(description="", level=Level.OPTIONAL)

    @staticmethod
    def _help(check: BaseCheck) -> HelpText:
        try:
            return check.get_help()
        except Exception as e:
            logger.error("Check %s failed to provide help text: %s", check.get_name(), e)
            return HelpText(message=f"Check {check.get_name()} did not pass.", suggestion="")


def run_checks(
    image: ImageReference,
    checks: Sequence[BaseCheck] | None = None,
    policy: CheckPolicy | None = None,
    config: Config | None = None,
) -> ImageResults:
    """
    Convenience function to run checks against a single image.

    Args:
        image: Fully-resolved image reference
        checks: Checks to run (default: built from *policy*)
        policy: Check policy (default: built-in defaults)
        config: Runtime configuration (default: from environment)

    Returns:
        ImageResults
    """
    engine = CheckEngine.from_config(config or Config.from_env(), checks=checks, policy=policy)
    return engine.run(image)
