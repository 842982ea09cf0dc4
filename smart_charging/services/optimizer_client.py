import asyncio
import logging

import requests

from smart_charging.core.exceptions import ConfigurationError, UpstreamError
from smart_charging.models.settings import OptimizerSettings

logger = logging.getLogger(__name__)

SUCCESS_STATUS_CODES = (200, 202)


class OptimizerClient:
    """
    Transport HTTP vers l'optimiseur

    Un seul POST par appel, sans retry : toute erreur remonte telle quelle
    sous forme d'UpstreamError.
    """

    def __init__(self, settings: OptimizerSettings):
        self.settings = settings

    def check_configuration(self):
        if not self.settings.optimizerUrl or not self.settings.user or not self.settings.password:
            raise ConfigurationError("Smart Charging optimizer configuration is incorrect")

    def post(self, payload: dict) -> dict:
        self.check_configuration()
        try:
            response = requests.post(
                self.settings.optimizerUrl,
                json=payload,
                headers={"Accept": "application/json"},
                auth=(self.settings.user, self.settings.password),
                timeout=self.settings.timeoutSeconds,
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"Smart Charging optimizer call failed: {e}") from e

        if response.status_code not in SUCCESS_STATUS_CODES:
            raise UpstreamError(
                f"Smart Charging optimizer responded with status '{response.status_code}' '{response.reason}'")

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Smart Charging optimizer returned an invalid body: {e}") from e

    async def call(self, payload: dict) -> dict:
        """POST bloquant exécuté hors de l'event loop"""
        return await asyncio.to_thread(self.post, payload)
