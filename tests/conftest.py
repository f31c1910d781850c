# -*- coding: utf-8 -*-
# SPDX-License-Identifier: MIT
import os

import pytest

os.environ.setdefault("PBS_TESTING", "1")

from tests import make_config  # noqa: E402


@pytest.fixture()
def pbs_conf(tmp_path):
    return make_config(str(tmp_path))
