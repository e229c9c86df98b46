import pytest

from doubles import FakeClock, FakeResolver


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def resolver():
    return FakeResolver()
