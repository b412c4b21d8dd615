import pytest

from helpers import FakeStore
from mongosink import selflog


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def diagnostics():
    """Collect selflog lines written while the test runs."""
    lines = []
    selflog.enable(lines.append)
    yield lines
    selflog.disable()
