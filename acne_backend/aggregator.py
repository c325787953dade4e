import asyncio
import logging
from typing import Dict, Optional

import httpx
from openai import AsyncOpenAI

from .adapters import (
    ClassifierAdapter,
    DetectorAdapter,
    DirectClassifierAdapter,
    GenerativeAdapter,
    SeverityGraderAdapter,
)
from .config import Settings
from .consensus import ALL_SOURCES, ConsensusResult, build_consensus
from .imaging import normalize_image
from .outcomes import AdapterOutcome

logger = logging.getLogger(__name__)


class PredictionAggregator:
    """
    Fans one image out to every classifier and folds the outcomes into a
    ConsensusResult.

    All adapters are started together and awaited together; a slow or broken
    source only costs its own slot. Only image normalization can fail the
    request (InvalidImageError).
    """

    def __init__(self, adapters: Dict[str, ClassifierAdapter], settings: Optional[Settings] = None):
        missing = [name for name in ALL_SOURCES if name not in adapters]
        if missing:
            raise ValueError(f"Missing adapters: {', '.join(missing)}")
        self.adapters = adapters
        self.settings = settings or Settings()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient,
        openai_client: Optional[AsyncOpenAI],
    ) -> 'PredictionAggregator':
        adapters = {
            'detector': DetectorAdapter(
                http_client,
                settings.detector_url,
                api_key=settings.detector_api_key,
                timeout=settings.timeout_for('detector'),
            ),
            'classifier': DirectClassifierAdapter(
                http_client,
                settings.classifier_url,
                timeout=settings.timeout_for('classifier'),
                class_names=settings.classifier_class_names,
            ),
            'generative': GenerativeAdapter(
                openai_client,
                model=settings.openai_vision_model,
                upload_timeout=settings.timeout_for('generative_upload'),
                generate_timeout=settings.timeout_for('generative'),
            ),
            'grader': SeverityGraderAdapter(
                http_client,
                settings.grader_url,
                timeout=settings.timeout_for('grader'),
            ),
        }
        return cls(adapters, settings)

    async def collect(self, image) -> Dict[str, AdapterOutcome]:
        names = list(self.adapters)
        results = await asyncio.gather(*(self.adapters[name].invoke(image) for name in names))
        return dict(zip(names, results))

    async def predict(self, image_data: str) -> ConsensusResult:
        # Pillow work is CPU bound; keep it off the event loop
        image = await asyncio.to_thread(
            normalize_image,
            image_data,
            max_side=self.settings.image_max_side,
            quality=self.settings.image_jpeg_quality,
        )
        outcomes = await self.collect(image)
        return build_consensus(outcomes)
