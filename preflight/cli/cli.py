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

"""Command-line interface for Preflight."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from ..config.config import Config
from ..core.assets import assets
from ..core.check_factory import available_checks, build_checks
from ..core.check_policy import CheckPolicy
from ..core.engine import CheckEngine
from ..core.exceptions import ConfigurationError, ImageLoadError
from ..core.loader import ImageLoader
from ..core.models import ImageResults, Outcome, Report

logger = logging.getLogger("preflight.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

# Marks handlers installed by _configure_logging so repeated runs replace them
_HANDLER_TAG = "_preflight_cli"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool, config: Config) -> None:
    """Console logging at WARNING (DEBUG with ``--verbose``), plus the log file."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    setattr(console, _HANDLER_TAG, True)
    root.addHandler(console)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG if verbose else config.log_level)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG)


def _load_config(args: argparse.Namespace) -> Config:
    """Build runtime configuration from the environment and CLI flags."""
    kwargs = {}
    if getattr(args, "timeout", None) is not None:
        kwargs["check_timeout_seconds"] = args.timeout
    if getattr(args, "parallel", False):
        kwargs["parallel_checks"] = True
    if getattr(args, "policy", None):
        kwargs["policy_path"] = args.policy
    return Config(**kwargs)


def _load_policy(config: Config) -> CheckPolicy:
    """Load the check policy named by *config* or return the default."""
    if config.policy_path:
        try:
            policy = CheckPolicy.from_yaml(config.policy_path)
        except FileNotFoundError as e:
            raise ConfigurationError(str(e)) from e
        logger.info("Using check policy: %s (%s)", config.policy_path, policy.policy_name)
        return policy
    return CheckPolicy.default()


def _format_output(args: argparse.Namespace, report: Report) -> str:
    """Generate the formatted output string for a report."""
    if args.format == "json":
        data = report.image_results[0].to_dict() if len(report.image_results) == 1 else report.to_dict()
        return json.dumps(data, indent=None if args.compact else 2)
    if len(report.image_results) == 1:
        return _generate_summary(report.image_results[0])
    return _generate_multi_image_summary(report)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}", file=sys.stderr if args.format == "json" else sys.stdout)
    else:
        print(output)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def check_command(args: argparse.Namespace) -> int:
    """Handle the ``check`` command for one or more image archives."""
    try:
        config = _load_config(args)
        _configure_logging(args.verbose, config)
        engine = CheckEngine(
            policy=_load_policy(config),
            timeout_seconds=config.check_timeout_seconds,
            parallel=config.parallel_checks,
        )
    except (ConfigurationError, ValueError, OSError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    report = Report()
    load_failures = 0
    with ImageLoader() as loader:
        for archive in args.archives:
            try:
                image = loader.load(Path(archive))
            except ImageLoadError as e:
                logger.info("Skipping %s: %s", archive, e)
                print(f"Error loading image: {e}", file=sys.stderr)
                load_failures += 1
                continue
            try:
                report.add_image_results(engine.run(image))
            finally:
                loader.release(image)

    if report.image_results:
        _write_output(args, _format_output(args, report))

    if load_failures:
        return EXIT_FAILURE
    if args.fail_on_failure and report.passing_images < report.total_images_checked:
        return EXIT_FAILURE
    return EXIT_OK


def list_checks_command(args: argparse.Namespace) -> int:
    """Handle the ``list-checks`` command."""
    try:
        policy = _load_policy(_load_config(args))
    except (ConfigurationError, ValueError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    enabled = {type(check) for check in build_checks(policy)}

    print("Available Checks:\n")
    for i, check_cls in enumerate(available_checks(), 1):
        check = check_cls(policy=policy)
        metadata = check.get_metadata()
        state = "[OK] enabled" if check_cls in enabled else "[WARNING] disabled by policy"
        print(f"  {i}. {check.get_name()} ({metadata.level.value}) {state}")
        print(f"     {metadata.description}")
        print()

    return EXIT_OK


def assets_command(args: argparse.Namespace) -> int:
    """Handle the ``assets`` command."""
    print(json.dumps(assets().to_dict(), indent=None if args.compact else 2))
    return EXIT_OK


def generate_policy_command(args: argparse.Namespace) -> int:
    """Handle the ``generate-policy`` command."""
    output_path = Path(args.output)
    try:
        CheckPolicy.default().to_yaml(output_path)
    except OSError as e:
        print(f"Error generating policy: {e}", file=sys.stderr)
        return EXIT_FAILURE

    print(f"Generated default check policy: {output_path}\n")
    print("Edit the file to customise, then use:")
    print(f"  preflight check --policy {output_path} image.tar")
    return EXIT_OK


# ---------------------------------------------------------------------------
# Summary formatters
# ---------------------------------------------------------------------------

_OUTCOME_TAGS = {
    Outcome.PASS: "[PASS]",
    Outcome.FAIL: "[FAIL]",
    Outcome.ERROR: "[ERROR]",
}


def _generate_summary(results: ImageResults) -> str:
    lines = [
        "=" * 60,
        f"Image: {results.image}",
        "=" * 60,
        f"Status: {'[OK] PASSED' if results.is_passing else '[FAIL] NOT PASSED'}",
        f"Checks: {len(results.results)} "
        f"({len(results.passed)} passed, {len(results.failed)} failed, {len(results.errors)} errors)",
        f"Duration: {results.duration_seconds:.2f}s",
        "",
        "Results:",
    ]
    for r in results.results:
        line = f"  {_OUTCOME_TAGS[r.outcome]:<7s} {r.check_name}"
        if r.error:
            line += f": {r.error}"
        lines.append(line)
        if r.help is not None:
            lines.append(f"          {r.help.message}")
            if r.help.suggestion:
                lines.append(f"          Suggestion: {r.help.suggestion}")
    return "\n".join(lines)


def _generate_multi_image_summary(report: Report) -> str:
    lines = [
        "=" * 60,
        "Preflight Certification Report",
        "=" * 60,
        f"Images Checked: {report.total_images_checked}",
        f"Passing Images: {report.passing_images}",
        "",
        "Checks by Outcome:",
        f"   Passed: {report.passed_count}",
        f"   Failed: {report.failed_count}",
        f"   Errors: {report.error_count}",
        "",
        "Individual Images:",
    ]
    for r in report.image_results:
        tag = "[OK]" if r.is_passing else "[FAIL]"
        lines.append(f"  {tag} {r.image} - {len(r.failed)} failed, {len(r.errors)} errors")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Preflight - Certification policy checks for container images",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  docker save -o image.tar registry.example.com/app:1.0
  preflight check image.tar
  preflight check image.tar --format json --output results.json
  preflight check a.tar b.tar --parallel --fail-on-failure
  preflight generate-policy -o my_policy.yaml
  preflight check image.tar --policy my_policy.yaml
  preflight list-checks
  preflight assets
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- check -------------------------------------------------------------
    check_p = subparsers.add_parser("check", help="Run the certification checks against image archives")
    check_p.add_argument("archives", nargs="+", help="Image archives produced by 'docker save' or 'podman save'")
    check_p.add_argument(
        "--format", choices=["summary", "json"], default="summary", help="Output format (default: summary)"
    )
    check_p.add_argument("--output", "-o", help="Output file path")
    check_p.add_argument("--compact", action="store_true", help="Compact JSON output")
    check_p.add_argument("--policy", metavar="PATH", help="Path to a check policy YAML")
    check_p.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Per-check time limit, 0 disables it (or set PREFLIGHT_CHECK_TIMEOUT)",
    )
    check_p.add_argument("--parallel", action="store_true", help="Run the checks of each image concurrently")
    check_p.add_argument("--verbose", action="store_true", help="Log debug output to stderr")
    check_p.add_argument("--fail-on-failure", action="store_true", help="Exit with error if any image does not pass")

    # -- list-checks -------------------------------------------------------
    lc_p = subparsers.add_parser("list-checks", help="List available checks")
    lc_p.add_argument("--policy", metavar="PATH", help="Path to a check policy YAML")

    # -- assets ------------------------------------------------------------
    assets_p = subparsers.add_parser("assets", help="Print the container images the checks depend on")
    assets_p.add_argument("--compact", action="store_true", help="Compact JSON output")

    # -- generate-policy ---------------------------------------------------
    gp_p = subparsers.add_parser("generate-policy", help="Generate a default check policy YAML")
    gp_p.add_argument("--output", "-o", default="check_policy.yaml", help="Output file path")

    # -- dispatch ----------------------------------------------------------
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    dispatch = {
        "check": check_command,
        "list-checks": list_checks_command,
        "assets": assets_command,
        "generate-policy": generate_policy_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
