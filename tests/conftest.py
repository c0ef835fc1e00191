import json

import pytest

from tests.helpers import SAMPLE_SESSION


@pytest.fixture
def sample_session_dict() -> dict:
    return json.loads(SAMPLE_SESSION.read_text(encoding="utf-8"))
