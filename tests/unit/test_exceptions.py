"""Tests for exception hierarchy."""
import pytest

from cfstream.core.exceptions import (
    BadRequestError,
    ConfigError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ProcessingError,
    ProtocolViolationError,
    RateLimitError,
    StreamError,
    TransportError,
    UnauthorizedError,
)


class TestTransportErrorFromStatus:
    """Test suite for TransportError.from_status."""

    @pytest.mark.parametrize("status,error_cls", [
        (400, BadRequestError),
        (401, UnauthorizedError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (429, RateLimitError),
    ])
    def test_status_mapping(self, status, error_cls):
        """Test known statuses map to subclasses."""
        error = TransportError.from_status(status, 'body', 'get video')

        assert type(error) is error_cls
        assert isinstance(error, TransportError)
        assert error.status_code == status
        assert error.body == 'body'

    def test_unknown_status(self):
        """Test other statuses use the base class."""
        error = TransportError.from_status(503, '', 'chunk upload')

        assert type(error) is TransportError
        assert str(error) == 'chunk upload failed with status 503'

    def test_message_includes_summary_and_body(self):
        """Test message format."""
        error = TransportError.from_status(404, 'gone', 'get video x')

        assert str(error) == 'video not found: get video x failed with status 404: gone'


class TestHierarchy:
    """Test suite for the class hierarchy."""

    @pytest.mark.parametrize("error_cls", [
        InvalidInputError,
        ConfigError,
        ProtocolViolationError,
        TransportError,
        ProcessingError,
    ])
    def test_all_derive_from_stream_error(self, error_cls):
        """Test one base class catches everything."""
        assert issubclass(error_cls, StreamError)

    def test_invalid_input_is_value_error(self):
        """Test InvalidInputError is also a ValueError."""
        assert issubclass(InvalidInputError, ValueError)

    def test_processing_error_keeps_video_id(self):
        """Test video ID attribute."""
        error = ProcessingError("failed", video_id="abc")

        assert error.video_id == "abc"
        assert error.status_code is None

    def test_network_error_has_no_status(self):
        """Test TransportError without a status."""
        assert TransportError("connection reset").status_code is None
