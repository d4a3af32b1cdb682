"""Dive history for one job."""
from __future__ import annotations

import logging

from divelog.client.errors import GatewayError

logger = logging.getLogger(__name__)


class JobHistory:
    def __init__(self, gateway, job_id):
        self.gateway = gateway
        self.job_id = job_id
        self.dives: list[dict] = []

    def refresh(self) -> list[dict]:
        """Reload the job's dives, most recently created first."""
        self.dives = self.gateway.list_job_dives(self.job_id)
        return self.dives

    def delete_dive(self, dive_id) -> None:
        """Remove a dive and its log.

        Events go first; when that fails the dive row is left alone and the
        error propagates.
        """
        try:
            self.gateway.delete_dive_events(dive_id)
        except GatewayError:
            logger.exception("Could not delete events of dive %s, keeping the dive", dive_id)
            raise
        try:
            self.gateway.delete_dive(dive_id)
        except GatewayError:
            logger.exception("Could not delete dive %s", dive_id)
            raise
        self.refresh()
