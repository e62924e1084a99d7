"""Collections agency webhook client with exponential backoff retry logic"""

import httpx
import asyncio
import logging
from typing import Dict, Any
from credit_ledger.config import settings
from credit_ledger.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class CollectionsClient:
    """Client forwarding defaulted loans to the external collections service"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.collections_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base

    async def forward_case(self, payload: Dict[str, Any]) -> bool:
        """
        Deliver a LOAN_FORWARDED_TO_COLLECTIONS event.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1)
        - Retries on 5xx/4xx responses and network failures
        - Gives up after max_retries; the ledger already holds the case, so a
          failed delivery is logged rather than raised

        Returns True when the event was accepted.
        """
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json={"event": "LOAN_FORWARDED_TO_COLLECTIONS", **payload},
                        )
                        response.raise_for_status()
                        return True

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logging.error(
                            f"Collections webhook failed after {attempt} attempts: {e}",
                            extra={"loan_id": payload.get("loan_id")},
                        )
                        return False

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
        return False
