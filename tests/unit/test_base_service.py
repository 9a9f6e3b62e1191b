# =============================================================================
# tests/unit/test_base_service.py
# Unit Tests for ServiceResult, BaseService and Notifiers
# =============================================================================

from unittest.mock import MagicMock

import pytest

from control_room.errors import DataValidationError
from control_room.services import BaseService, RecordingNotifier, ServiceResult, StreamlitNotifier


class EchoService(BaseService):
    def run(self, func, notify=False):
        return self.safe_execute("Echo", func, notify=notify)


class TestServiceResult:
    """Truthiness, failure codes, unwrap"""

    def test_ok(self):
        result = ServiceResult.ok([1], source="cache")

        assert result
        assert result.metadata == {"source": "cache"}
        assert result.unwrap() == [1]

    def test_package_error_keeps_code_and_details(self):
        result = ServiceResult.from_exception(DataValidationError("bad", field="amount"))

        assert not result
        assert result.error_code == "DATA_001"
        assert result.metadata["field"] == "amount"

    def test_unwrap_failure(self):
        with pytest.raises(RuntimeError, match="EXCEPTION"):
            ServiceResult.from_exception(ValueError("x")).unwrap()


class TestBaseService:
    """safe_execute never lets an error escape"""

    def test_success(self):
        assert EchoService().run(lambda: 42).data == 42

    def test_package_error_silent_by_default(self, mock_notifier):
        def explode():
            raise DataValidationError("bad")

        result = EchoService(mock_notifier).run(explode)

        assert result.error_code == "DATA_001"
        mock_notifier.error.assert_not_called()

    def test_unexpected_error_notified_on_request(self, mock_notifier):
        def explode():
            raise KeyError("boom")

        result = EchoService(mock_notifier).run(explode, notify=True)

        assert result.error_code == "EXCEPTION"
        mock_notifier.error.assert_called_once()


class TestNotifiers:
    """Recording and Streamlit notifiers"""

    def test_recording_drain(self):
        notifier = RecordingNotifier()
        notifier.info("a")
        notifier.error("b")

        assert notifier.drain() == [("info", "a"), ("error", "b")]
        assert notifier.messages == []

    def test_streamlit_toasts_and_errors(self, monkeypatch):
        mock_st = MagicMock()
        monkeypatch.setattr("control_room.services.notifier.st", mock_st)
        notifier = StreamlitNotifier()

        notifier.success("تم")
        notifier.error("فشل")

        mock_st.toast.assert_called_once_with("تم", icon="✅")
        mock_st.error.assert_called_once_with("فشل")
