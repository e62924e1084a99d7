"""Unit tests for the collections webhook client"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch
from credit_ledger.infrastructure.clients.collections import CollectionsClient

WEBHOOK_URL = "http://collections.test/cases"


def _response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", WEBHOOK_URL))


@pytest.mark.asyncio
@patch("credit_ledger.infrastructure.clients.collections.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_forward_case_posts_event(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.return_value = _response(202)
    client = CollectionsClient(webhook_url=WEBHOOK_URL)

    delivered = await client.forward_case({"loan_id": "LN1", "borrower_id": "BR1"})

    assert delivered is True
    mock_post.assert_awaited_once()
    assert mock_post.call_args.kwargs["json"] == {
        "event": "LOAN_FORWARDED_TO_COLLECTIONS",
        "loan_id": "LN1",
        "borrower_id": "BR1",
    }
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
@patch("credit_ledger.infrastructure.clients.collections.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_forward_case_retries_with_backoff(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.side_effect = [_response(503), httpx.ConnectError("refused"), _response(200)]
    client = CollectionsClient(webhook_url=WEBHOOK_URL)
    client.backoff_base = 0.5

    delivered = await client.forward_case({"loan_id": "LN1"})

    assert delivered is True
    assert mock_post.await_count == 3
    assert [call.args[0] for call in mock_sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
@patch("credit_ledger.infrastructure.clients.collections.asyncio.sleep", new_callable=AsyncMock)
@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_forward_case_gives_up_without_raising(mock_post: AsyncMock, mock_sleep: AsyncMock):
    mock_post.return_value = _response(500)
    client = CollectionsClient(webhook_url=WEBHOOK_URL)
    client.max_retries = 3

    delivered = await client.forward_case({"loan_id": "LN1"})

    assert delivered is False
    assert mock_post.await_count == 3
    assert mock_sleep.await_count == 2
