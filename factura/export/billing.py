"""
Billing exporter - Sends finalized records downstream.
"""

from __future__ import annotations
import logging
from typing import Any

import requests

from ..config import BillingConfig
from ..engine_core.errors import ConfigurationError, ExportFailure, InvalidTransition
from ..engine_core.state import Phase, Session
from .json_export import record_to_dict

logger = logging.getLogger(__name__)


class BillingExporter:
    """
    POSTs the finalized record as JSON to the billing API.

    Usage:
        exporter = BillingExporter(config.billing)
        exporter.send(session)
    """

    def __init__(self, config: BillingConfig, session: requests.Session | None = None):
        if not config.is_configured:
            raise ConfigurationError(
                "Billing API URL not set.\n"
                "Set it via environment variable: FACTURA_BILLING_URL=https://..."
            )
        self.config = config
        self.http = session or requests.Session()

    def send(self, session: Session) -> dict[str, Any]:
        """
        Send the session's record.

        Returns:
            The billing API's JSON reply (empty dict if it sent none)
        """
        if session.phase != Phase.FINALIZED:
            raise InvalidTransition(
                f"Only finalized records can be sent (phase is {session.phase.value})",
                phase=session.phase,
            )

        headers = {"Content-Type": "application/json"}
        if self.config.token:
            headers["Authorization"] = f"Bearer {self.config.token}"

        try:
            response = self.http.post(
                self.config.url,
                json=record_to_dict(session.record),
                headers=headers,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise ExportFailure(f"Could not reach the billing API: {e}")

        if response.status_code >= 400:
            raise ExportFailure(
                f"Billing API returned status {response.status_code}: {response.text[:200]}"
            )

        logger.info("Sent record with %d item(s) to billing API", len(session.record.line_items))
        try:
            return response.json()
        except ValueError:
            return {}
