import pytest

from core.exceptions import (
    ConfigurationError,
    NetworkError,
    PermanentError,
    RideSyncError,
    ServiceUnavailableError,
    StateError,
    TransientError,
    ValidationError,
)


@pytest.mark.unit
class TestExceptionHierarchy:
    @pytest.mark.parametrize("cls", [NetworkError, ServiceUnavailableError])
    def test_transient(self, cls):
        assert issubclass(cls, TransientError)
        assert not issubclass(cls, PermanentError)

    @pytest.mark.parametrize(
        "cls", [ValidationError, StateError, ConfigurationError]
    )
    def test_permanent(self, cls):
        assert issubclass(cls, PermanentError)
        assert not issubclass(cls, TransientError)

    def test_details_default_to_empty(self):
        error = RideSyncError("boom")
        assert error.message == "boom"
        assert error.details == {}
        assert str(error) == "boom"

    def test_details_kept(self):
        error = NetworkError("timeout", details={"status_code": 504})
        assert error.details["status_code"] == 504
