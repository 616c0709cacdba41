# SPDX-License-Identifier: MIT
import pytest

from samples import RecordingLogger


@pytest.fixture
def logger():
    return RecordingLogger()
