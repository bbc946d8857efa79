import pytest

import fetchx
from fetchx import CacheContext


@pytest.fixture(autouse=True)
def _isolate():
    fetchx.set_default_context(None)
    yield
    fetchx.set_scheduler(None)
    fetchx.set_default_context(None)


@pytest.fixture
def ctx():
    """Context with a short retry delay so retry tests stay fast."""
    context = CacheContext(retry_delay=0.01)
    yield context
    context.reset_all_caches()
