# /realty_intake/services/airtable_service.py

import httpx
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from realty_intake.config import strings
from realty_intake.config.settings import settings
from realty_intake.models.domain import SubmissionResult
from realty_intake.utils.circuit_breaker import CircuitBreaker, CircuitOpenError

# This service is the lead submission boundary: it creates exactly one
# Airtable record per call and always answers with a SubmissionResult.

logger = logging.getLogger(__name__)

AIRTABLE_API_URL = "https://api.airtable.com/v0"


class AirtableLeadService:
    def __init__(self, api_key: Optional[str], base_id: Optional[str], table: str):
        self.api_key = api_key
        self.base_id = base_id
        self.table = table
        self.http_client = httpx.AsyncClient(timeout=15.0)
        self.circuit_breaker = CircuitBreaker("airtable")
        if not self.is_configured:
            logger.warning("Airtable credentials are not configured; lead submission will always fail.")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)

    @property
    def table_url(self) -> str:
        return f"{AIRTABLE_API_URL}/{self.base_id}/{quote(self.table, safe='')}"

    async def _create_record(self, fields: Dict[str, Any]) -> httpx.Response:
        response = await self.http_client.post(
            self.table_url,
            json={"records": [{"fields": fields}]},
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
        )
        response.raise_for_status()
        return response

    async def submit(self, record: Dict[str, Any]) -> SubmissionResult:
        """
        Creates one record from the full field mapping.

        Never raises: transport errors, remote errors and an open circuit all
        come back as the failure variant carrying a diagnostic payload.
        """
        if not self.is_configured:
            return SubmissionResult.failure(strings.AIRTABLE_NOT_CONFIGURED)

        try:
            response = await self.circuit_breaker.call(self._create_record, dict(record))
            records = response.json().get("records") or [{}]
            record_id = records[0].get("id")
            logger.info(f"Airtable record created: {record_id}")
            return SubmissionResult.success(record_id)
        except httpx.HTTPStatusError as e:
            try:
                detail = e.response.json()
            except ValueError:
                detail = e.response.text
            logger.error(f"airtable_create_failed: {e.response.status_code} - {detail}")
            return SubmissionResult.failure(detail)
        except CircuitOpenError as e:
            logger.error(f"airtable_create_skipped: {e}")
            return SubmissionResult.failure(str(e))
        except Exception as e:
            logger.error(f"airtable_create_error: {e}", exc_info=True)
            return SubmissionResult.failure(str(e) or e.__class__.__name__)

    async def close(self):
        await self.http_client.aclose()


# Globally accessible instance
lead_service = AirtableLeadService(
    settings.airtable_api_key,
    settings.airtable_base_id,
    settings.airtable_table,
)
