import pytest

from tests._factories.harness import Harness, build_harness


@pytest.fixture
def harness() -> Harness:
    return build_harness()
