# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest


@pytest.fixture(autouse=True)
def gluejobs_log_level():
    # resolution logs (ex: ignored toggles) are asserted via caplog
    logging.getLogger("gluejobs").setLevel(logging.DEBUG)
    yield
