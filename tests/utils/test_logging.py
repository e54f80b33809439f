from unittest.mock import MagicMock, patch

from miniapp.utils.errors import ErrorCode, NotFoundError
from miniapp.utils.logging import configure_logging, get_logger, log_error


@patch("miniapp.utils.logging.structlog")
@patch("miniapp.utils.logging.logging")
@patch("miniapp.utils.logging.settings")
def test_configure_logging_development(mock_settings, mock_logging, mock_structlog):
    mock_settings.LOG_LEVEL = "DEBUG"
    mock_settings.ENVIRONMENT = "development"

    configure_logging()

    mock_logging.basicConfig.assert_called_once()
    _args, kwargs = mock_logging.basicConfig.call_args
    assert kwargs["level"] == mock_logging.DEBUG

    mock_structlog.configure.assert_called_once()
    processors = mock_structlog.configure.call_args[1]["processors"]
    assert mock_structlog.dev.ConsoleRenderer.return_value in processors


@patch("miniapp.utils.logging.structlog")
@patch("miniapp.utils.logging.logging")
@patch("miniapp.utils.logging.settings")
def test_configure_logging_production(mock_settings, mock_logging, mock_structlog):
    mock_settings.LOG_LEVEL = "INFO"
    mock_settings.ENVIRONMENT = "production"

    configure_logging()

    processors = mock_structlog.configure.call_args[1]["processors"]
    assert mock_structlog.processors.JSONRenderer.return_value in processors


@patch("miniapp.utils.logging.structlog")
def test_get_logger(mock_structlog):
    mock_logger = MagicMock()
    mock_structlog.get_logger.return_value = mock_logger

    logger = get_logger("test_logger", foo="bar")

    mock_structlog.get_logger.assert_called_with("test_logger")
    mock_logger.bind.assert_called_with(foo="bar")
    assert logger == mock_logger.bind.return_value


def test_log_error_plain_exception():
    mock_logger = MagicMock()
    error = ValueError("Test error")

    log_error(mock_logger, error, "Custom message", {"user_id": "u1"})

    mock_logger.error.assert_called_once()
    args, kwargs = mock_logger.error.call_args
    assert args[0] == "Custom message"
    assert kwargs["error_type"] == "ValueError"
    assert kwargs["error_message"] == "Test error"
    assert kwargs["user_id"] == "u1"
    assert kwargs["exc_info"] is error
    assert "error_code" not in kwargs


def test_log_error_includes_code_and_details():
    mock_logger = MagicMock()
    error = NotFoundError("gone", ErrorCode.REPORT_NOT_FOUND, details={"report_id": "r1"})

    log_error(mock_logger, error)

    args, kwargs = mock_logger.error.call_args
    assert args[0] == "An error occurred"
    assert kwargs["error_code"] == "REPORT_NOT_FOUND"
    assert kwargs["error_details"] == {"report_id": "r1"}
