# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the BasedOnUbi check."""

import dataclasses
import logging

import pytest

from preflight.core.check_policy import CheckPolicy
from preflight.core.checks.container import BasedOnUbiCheck
from preflight.core.engine import CheckEngine
from preflight.core.exceptions import CheckEvaluationError
from preflight.core.models import Level, Outcome

RHEL_ONLY_LINES = 'ID="rhel"\nNAME="Red Hat Enterprise Linux"\n'
UBI_COMPONENT = {"com.redhat.component": "ubi8-container"}


class TestBasedOnUbiVerdicts:
    """Signals combine into a single verdict."""

    def test_rhel_os_release_and_ubi_component_passes(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release=RHEL_ONLY_LINES)
        assert BasedOnUbiCheck().validate(image) is True

    def test_missing_component_label_fails(self, make_image):
        image = make_image(labels={}, os_release=RHEL_ONLY_LINES)
        assert BasedOnUbiCheck().validate(image) is False

    def test_centos_os_release_fails(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release='ID="centos"\nNAME="CentOS Linux"\n')
        assert BasedOnUbiCheck().validate(image) is False

    def test_missing_os_release_is_an_error_not_a_failure(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release=None)
        with pytest.raises(CheckEvaluationError) as exc_info:
            BasedOnUbiCheck().validate(image)
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_absolute_os_release_path_stays_inside_image(self, make_image):
        settings = dataclasses.replace(CheckPolicy.default().based_on_ubi, os_release_path="/etc/os-release")
        check = BasedOnUbiCheck(policy=dataclasses.replace(CheckPolicy.default(), based_on_ubi=settings))
        assert check.validate(make_image(labels=UBI_COMPONENT, os_release=RHEL_ONLY_LINES)) is True
        with pytest.raises(CheckEvaluationError):
            check.validate(make_image(labels=UBI_COMPONENT, os_release=None))

    def test_os_release_path_cannot_leave_image(self, make_image):
        settings = dataclasses.replace(CheckPolicy.default().based_on_ubi, os_release_path="../../etc/os-release")
        check = BasedOnUbiCheck(policy=dataclasses.replace(CheckPolicy.default(), based_on_ubi=settings))
        with pytest.raises(CheckEvaluationError, match="escapes"):
            check.validate(make_image(labels=UBI_COMPONENT, os_release=RHEL_ONLY_LINES))

    def test_name_line_absent_fails(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release='ID="rhel"\n')
        assert BasedOnUbiCheck().validate(image) is False

    def test_id_line_absent_fails(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release='NAME="Red Hat Enterprise Linux"\n')
        assert BasedOnUbiCheck().validate(image) is False

    def test_component_without_ubi_marker_fails(self, make_image):
        image = make_image(labels={"com.redhat.component": "rhel-server-container"}, os_release=RHEL_ONLY_LINES)
        assert BasedOnUbiCheck().validate(image) is False

    def test_full_os_release_file_passes(self, make_image):
        """Real os-release files carry many more lines in any order."""
        assert BasedOnUbiCheck().validate(make_image()) is True

    def test_lines_must_start_with_signal(self, make_image):
        image = make_image(labels=UBI_COMPONENT, os_release=' ID="rhel"\n NAME="Red Hat Enterprise Linux"\n')
        assert BasedOnUbiCheck().validate(image) is False

    def test_id_like_rhel_is_not_enough(self, make_image):
        os_release = 'ID="centos"\nID_LIKE="rhel fedora"\nNAME="Red Hat Enterprise Linux"\n'
        image = make_image(labels=UBI_COMPONENT, os_release=os_release)
        assert BasedOnUbiCheck().validate(image) is False


class TestBasedOnUbiLayerInspection:
    """Layer streams are read for diagnostics only."""

    def test_every_layer_is_opened(self, make_image, make_layer):
        layers = [make_layer(b"one"), make_layer(b"two"), make_layer(b"three")]
        image = make_image(layers=layers)
        BasedOnUbiCheck().validate(image)
        assert [layer.open_count for layer in layers] == [1, 1, 1]

    def test_layer_content_does_not_affect_verdict(self, make_image, make_layer):
        image = make_image(layers=[make_layer(b"\x00" * 4096)])
        assert BasedOnUbiCheck().validate(image) is True

    def test_layer_stream_error_aborts_check(self, make_image, make_layer):
        image = make_image(layers=[make_layer(b"ok"), make_layer(error=OSError("blob missing"))])
        with pytest.raises(OSError, match="blob missing"):
            BasedOnUbiCheck().validate(image)

    def test_layer_stream_error_reported_as_error(self, make_image, make_layer):
        image = make_image(layers=[make_layer(error=OSError("blob missing"))])
        results = CheckEngine(checks=[BasedOnUbiCheck()]).run(image)
        result = results.get("BasedOnUbi")
        assert result.outcome == Outcome.ERROR
        assert "blob missing" in result.error

    def test_layer_inspection_can_be_disabled_by_policy(self, make_image, make_layer):
        default = CheckPolicy.default()
        policy = dataclasses.replace(
            default, based_on_ubi=dataclasses.replace(default.based_on_ubi, inspect_layers=False)
        )
        layer = make_layer(error=OSError("never opened"))
        image = make_image(layers=[layer])
        assert BasedOnUbiCheck(policy=policy).validate(image) is True
        assert layer.open_count == 0

    def test_layer_digests_logged_at_debug(self, make_image, make_layer, caplog):
        layer = make_layer(b"abc")
        with caplog.at_level(logging.DEBUG, logger="preflight.core.checks.container.based_on_ubi"):
            BasedOnUbiCheck().validate(make_image(layers=[layer]))
        assert layer.digest in caplog.text


class TestBasedOnUbiDescription:
    def test_name(self):
        assert BasedOnUbiCheck().get_name() == "BasedOnUbi"

    def test_metadata(self):
        metadata = BasedOnUbiCheck().get_metadata()
        assert metadata.level == Level.BEST
        assert "Universal Base Image" in metadata.description
        assert metadata.knowledge_base_url.startswith("https://")

    def test_help_points_at_ubi(self):
        help_text = BasedOnUbiCheck().get_help()
        assert "BasedOnUbi" in help_text.message
        assert "preflight.log" in help_text.message
        assert "registry.access.redhat.com/ubi8/ubi" in help_text.suggestion

    def test_repeat_validation_is_stable(self, make_image):
        check = BasedOnUbiCheck()
        image = make_image(labels={}, os_release=RHEL_ONLY_LINES)
        assert [check.validate(image) for _ in range(3)] == [False, False, False]
