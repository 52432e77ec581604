#
# Pytest Fixtures
#

# Standard library -----------------------------------------------------------------------------------------------------
import threading
import time

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from datasize.display import NumberFormat, NumberFormatCache


# Fixtures -------------------------------------------------------------------------------------------------------------

@pytest.fixture
def counting_factory():
    """Fixture for a slow NumberFormat factory which records every construction."""
    calls = []
    lock = threading.Lock()

    def _factory(locale: str) -> NumberFormat:
        with lock:
            calls.append(locale)
        # Widen the window for a racing construction
        time.sleep(0.01)
        return NumberFormat.for_locale(locale)

    _factory.calls = calls
    return _factory


@pytest.fixture
def format_cache(counting_factory) -> NumberFormatCache:
    """Fixture for an empty NumberFormatCache backed by the counting factory."""
    return NumberFormatCache(factory=counting_factory)
