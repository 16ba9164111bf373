# Copyright 2026 Cisco Systems, Inc. and its affiliates
# SPDX-License-Identifier: Apache-2.0

"""
Container image policy checks.

Each module implements one check class.  Every class follows the pattern::

    class <Name>Check(BaseCheck):
        def validate(self, image: ImageReference) -> bool: ...
        def get_name(self) -> str: ...
        def get_metadata(self) -> Metadata: ...
        def get_help(self) -> HelpText: ...

``validate`` returns False for a policy failure and raises
``CheckEvaluationError`` when the image could not be evaluated.
"""

from .based_on_ubi import BasedOnUbiCheck
from .has_license import HasLicenseCheck
from .has_required_label import HasRequiredLabelCheck
from .layer_count import LayerCountAcceptableCheck
from .run_as_non_root import RunAsNonRootCheck

__all__ = [
    "BasedOnUbiCheck",
    "HasLicenseCheck",
    "HasRequiredLabelCheck",
    "LayerCountAcceptableCheck",
    "RunAsNonRootCheck",
]
