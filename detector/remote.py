"""
Remote classifier client for the model-based second opinion.

Sends the full sample sequence with a prompt and expects a JSON body with a
`classification` of 0 (human) or 1 (bot). Any failure maps to UNKNOWN.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Protocol, Sequence

import aiohttp
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from detector.config import DetectionConfig
from detector.schemas.inputs import RemoteClassificationRequest, Sample
from detector.schemas.outputs import Classification


logger = logging.getLogger(__name__)


class RemoteClassificationResponse(BaseModel):
    """Expected remote reply; extra keys are ignored, "1"/1.0/true are not 1."""
    model_config = ConfigDict(extra="ignore")

    classification: StrictInt = Field(..., ge=0, le=1)


def parse_remote_response(data: Any) -> Classification:
    """Map a decoded response body to a Classification (UNKNOWN if malformed)."""
    try:
        response = RemoteClassificationResponse.model_validate(data)
    except ValidationError as e:
        logger.error(f"Malformed remote classifier response: {e}")
        return Classification.UNKNOWN
    return Classification(response.classification)


class RemoteClassifierClient(Protocol):
    async def classify(self, samples: Sequence[Sample]) -> Classification: ...


class RemoteClassifier:
    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str] = None,
        prompt: Optional[str] = None,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None
    ):
        self.url = url
        self.api_key = api_key
        self.prompt = prompt or DetectionConfig().remote_prompt
        self.timeout_seconds = timeout_seconds
        self.session = session
        self._owns_session = session is None

        if not url:
            logger.warning("Remote classifier URL not configured, remote verdicts disabled")

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "RemoteClassifier":
        return cls(
            url=config.remote_url,
            api_key=config.remote_api_key,
            prompt=config.remote_prompt,
            timeout_seconds=config.remote_timeout_seconds,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or lazily create the aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def classify(self, samples: Sequence[Sample]) -> Classification:
        """POST the samples and return the remote verdict; never raises for transport errors."""
        if not self.url:
            return Classification.UNKNOWN

        payload = RemoteClassificationRequest(
            prompt=self.prompt,
            mouse_data=list(samples),
        ).model_dump(by_alias=True)

        try:
            session = await self._get_session()
            async with session.post(
                self.url,
                json=payload,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                response.raise_for_status()
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error calling remote classifier: {e}")
            return Classification.UNKNOWN

        classification = parse_remote_response(data)
        logger.info(f"Remote classification: {classification.name}")
        logger.debug(f"Full remote response: {data}")
        return classification

    async def close(self):
        """Close the session if this client created it"""
        if self.session and self._owns_session and not self.session.closed:
            await self.session.close()
