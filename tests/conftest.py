"""Root test configuration: logging isolation between tests"""

import pytest
import structlog


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo any structlog configuration a test (or CLI invocation) installed."""
    yield
    structlog.reset_defaults()
