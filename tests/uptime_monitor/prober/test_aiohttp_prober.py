"""
Unit tests for the AiohttpProber class.

This module contains tests for the AiohttpProber class, ensuring that it
issues one request per probe and classifies responses, timeouts and network
errors into outcomes.

The tests follow the Arrange-Act-Assert (AAA) pattern and use proper mocking
of all external dependencies to ensure true unit testing.
"""

import asyncio
from typing import Tuple
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
import pytest_asyncio
from yarl import URL

from uptime_monitor.domain import Check, CheckOutcome, HttpMethod, ProbeError, Protocol
from uptime_monitor.prober.aiohttp_prober import AiohttpProber, OutcomeSlot, build_target_url


@pytest_asyncio.fixture
async def mock_session() -> Tuple[MagicMock, MagicMock]:
    """
    Creates a mock aiohttp.ClientSession for testing.

    Returns:
        Tuple[MagicMock, MagicMock]: A tuple containing a mock ClientSession and a mock response.
    """
    session = MagicMock(spec=aiohttp.ClientSession)

    mock_response = MagicMock()
    mock_response.status = 200

    request_ctx = MagicMock()
    request_ctx.__aenter__ = AsyncMock(return_value=mock_response)
    request_ctx.__aexit__ = AsyncMock(return_value=False)
    session.request.return_value = request_ctx

    return session, mock_response


@pytest.fixture
def sample_check() -> Check:
    """
    Creates a sample Check object for testing.

    Returns:
        Check: A Check object with test values.
    """
    return Check(
        id="abcdefghij0123456789",
        owner_phone="5551234567",
        protocol=Protocol.HTTPS,
        url="example.com:8443/health?deep=1#top",
        method=HttpMethod.POST,
        success_codes=(200,),
        timeout_seconds=2,
    )


def _failing_request(session: MagicMock, error: BaseException) -> None:
    request_ctx = MagicMock()
    request_ctx.__aenter__ = AsyncMock(side_effect=error)
    request_ctx.__aexit__ = AsyncMock(return_value=False)
    session.request.return_value = request_ctx


def test_build_target_url_keeps_port_path_and_query(sample_check):
    """
    Test that the probed url keeps the port, path and query but drops the fragment.
    """
    # Act
    url = build_target_url(sample_check)

    # Assert
    assert url == URL("https://example.com:8443/health?deep=1")
    assert url.fragment == ""


def test_build_target_url_without_host_raises(sample_check):
    """
    Test that a url without host cannot be probed.
    """
    # Arrange
    check = sample_check._replace(url="/only/a/path")

    # Act & Assert
    with pytest.raises(ValueError):
        build_target_url(check)


@pytest.mark.asyncio
async def test_probe_success(mock_session, sample_check):
    """
    Test that a response is reported with its status code and no error.
    """
    # Arrange
    session, mock_response = mock_session
    mock_response.status = 204
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check)

    # Assert
    assert outcome == CheckOutcome(response_code=204)
    session.request.assert_called_once()
    args, kwargs = session.request.call_args
    assert args == ("POST", URL("https://example.com:8443/health?deep=1"))
    assert kwargs["allow_redirects"] is False
    assert kwargs["timeout"].total == 2


@pytest.mark.asyncio
async def test_probe_failure_status_is_not_an_error(mock_session, sample_check):
    """
    Test that an error status is recorded as a response, not as a probe failure.
    """
    # Arrange
    session, mock_response = mock_session
    mock_response.status = 503
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check)

    # Assert
    assert outcome.error is None
    assert outcome.response_code == 503


@pytest.mark.asyncio
async def test_probe_timeout(mock_session, sample_check):
    """
    Test that a request exceeding its timeout is reported as a timeout.
    """
    # Arrange
    session, _ = mock_session
    _failing_request(session, asyncio.TimeoutError())
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check)

    # Assert
    assert outcome.error == ProbeError.TIMEOUT
    assert outcome.response_code is None
    assert outcome.detail == "No response within 2s"


@pytest.mark.asyncio
async def test_probe_network_error(mock_session, sample_check):
    """
    Test that a connection failure is reported as a network error.
    """
    # Arrange
    session, _ = mock_session
    _failing_request(session, aiohttp.ClientConnectionError("Connection refused"))
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check)

    # Assert
    assert outcome.error == ProbeError.NETWORK_ERROR
    assert outcome.response_code is None
    assert "Connection refused" in outcome.detail


@pytest.mark.asyncio
async def test_probe_invalid_url_is_a_network_error(mock_session, sample_check):
    """
    Test that an unusable url is classified instead of raised, without any request.
    """
    # Arrange
    session, _ = mock_session
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check._replace(url="/no-host"))

    # Assert
    assert outcome.error == ProbeError.NETWORK_ERROR
    session.request.assert_not_called()


@pytest.mark.asyncio
async def test_probe_error_after_response_keeps_response(mock_session, sample_check):
    """
    Test that an error raised after the response was received does not replace it.
    """
    # Arrange
    session, mock_response = mock_session
    mock_response.status = 200
    session.request.return_value.__aexit__ = AsyncMock(
        side_effect=aiohttp.ClientPayloadError("connection reset")
    )
    prober = AiohttpProber(instance_id="test-instance", session=session)

    # Act
    outcome = await prober.probe(sample_check)

    # Assert
    assert outcome == CheckOutcome(response_code=200)


@pytest.mark.asyncio
async def test_outcome_slot_first_writer_wins():
    """
    Test that the slot keeps the first outcome and refuses later ones.
    """
    # Arrange
    slot = OutcomeSlot()
    first = CheckOutcome(response_code=200)
    late = CheckOutcome(error=ProbeError.TIMEOUT)

    # Act
    accepted_first = slot.offer(first)
    accepted_late = slot.offer(late)

    # Assert
    assert accepted_first is True
    assert accepted_late is False
    assert slot.delivered
    assert slot.result() == first


@pytest.mark.asyncio
async def test_outcome_slot_result_before_offer_raises():
    """
    Test that reading an empty slot is an error.
    """
    # Arrange
    slot = OutcomeSlot()

    # Act & Assert
    assert not slot.delivered
    with pytest.raises(asyncio.InvalidStateError):
        slot.result()
