# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for centralized check construction."""

import dataclasses

from preflight.core.check_factory import available_checks, build_checks
from preflight.core.check_policy import ChecksPolicy, CheckPolicy
from preflight.core.checks.base import BaseCheck

CANONICAL_ORDER = ["BasedOnUbi", "HasRequiredLabel", "LayerCountAcceptable", "RunAsNonRoot", "HasLicense"]


class TestBuildChecks:
    def test_default_order(self):
        assert [c.get_name() for c in build_checks()] == CANONICAL_ORDER

    def test_checks_receive_policy(self):
        policy = CheckPolicy.default()
        assert all(check.policy is policy for check in build_checks(policy))

    def test_disabled_checks_are_skipped(self):
        policy = dataclasses.replace(
            CheckPolicy.default(), checks=ChecksPolicy(based_on_ubi=False, run_as_non_root=False)
        )
        assert [c.get_name() for c in build_checks(policy)] == [
            "HasRequiredLabel",
            "LayerCountAcceptable",
            "HasLicense",
        ]

    def test_all_disabled(self):
        policy = dataclasses.replace(
            CheckPolicy.default(),
            checks=ChecksPolicy(
                based_on_ubi=False,
                has_required_label=False,
                layer_count_acceptable=False,
                run_as_non_root=False,
                has_license=False,
            ),
        )
        assert build_checks(policy) == []

    def test_fresh_instances_each_call(self):
        first, second = build_checks(), build_checks()
        assert all(a is not b for a, b in zip(first, second))


class TestAvailableChecks:
    def test_every_class_is_a_check(self):
        classes = available_checks()
        assert len(classes) == len(CANONICAL_ORDER)
        assert all(issubclass(cls, BaseCheck) for cls in classes)

    def test_names_are_unique(self):
        names = [cls().get_name() for cls in available_checks()]
        assert names == CANONICAL_ORDER
        assert len(set(names)) == len(names)
