# botanai/services/analyzer.py
import asyncio
import logging
import time
from functools import lru_cache
from pathlib import Path
from typing import Optional

from botanai.config import get_settings, Settings
from botanai.models.plant_analysis import ImageBudget, Language, PlantAnalysis
from botanai.services.extractor import extract_analysis
from botanai.services.fallback import build_mock_analysis
from botanai.services.history import HistoryStore, JsonFileBackend
from botanai.services.inference import ConfigurationError, InferenceClient, UnknownModelError
from botanai.services.normalizer import normalize_image
from botanai.services.prompts import build_analysis_request

logger = logging.getLogger(__name__)


class PlantAnalyzerService:
    """Service for the analysis of plant images."""

    def __init__(
            self,
            client: InferenceClient,
            history: HistoryStore,
            model: str,
            max_tokens: int = 800,
            budget: Optional[ImageBudget] = None,
            mock_fallback: bool = True,
            store_source_image: bool = True,
    ):
        self.client = client
        self.history = history
        self.model = model
        self.max_tokens = max_tokens
        self.budget = budget or ImageBudget()
        self.mock_fallback = mock_fallback
        self.store_source_image = store_source_image
        # One analysis at a time, so history appends happen in completion order
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlantAnalyzerService":
        history = HistoryStore(JsonFileBackend.in_directory(Path(settings.HISTORY_DIR)))
        history.load()
        client = InferenceClient(
            api_key=settings.inference_api_key,
            base_url=settings.INFERENCE_BASE_URL,
            anthropic_version=settings.ANTHROPIC_VERSION,
            timeout_seconds=settings.INFERENCE_TIMEOUT_SECONDS,
        )
        return cls(
            client=client,
            history=history,
            model=settings.INFERENCE_MODEL,
            max_tokens=settings.INFERENCE_MAX_TOKENS,
            budget=settings.image_budget,
            mock_fallback=settings.MOCK_FALLBACK,
            store_source_image=settings.STORE_SOURCE_IMAGE,
        )

    async def analyze_image(self, image_bytes: bytes, language: Language = Language.EN) -> PlantAnalysis:
        """
        Analyze plant image bytes, record the result in the history and return it.

        Raises:
            ImageDecodeError: If the upload is not a readable image.
            ConfigurationError: If no credential is available and the mock fallback is off.
            UpstreamError: If the provider call fails.
            ExtractionError: If the model reply cannot be turned into an analysis.
        """
        language = Language(language)
        async with self._lock:
            start_time = time.time()
            image = await asyncio.to_thread(normalize_image, image_bytes, self.budget)
            logger.info(f"Normalized image to {image.width}x{image.height} "
                        f"(~{image.estimated_bytes} bytes, {image.passes} pass(es))")

            result = await self._run_inference(image.data_url, language)

            if self.store_source_image:
                result = result.model_copy(update={"image": image.data_url})

            self.history.append(result)
            processing_time = int((time.time() - start_time) * 1000)
            logger.info(f"Analysis {result.id} finished in {processing_time} ms: "
                        f"{result.common_name} ({result.health_status.value}, mock={result.is_mock})")
            return result

    async def _run_inference(self, data_url: str, language: Language) -> PlantAnalysis:
        if not self.client.configured:
            if self.mock_fallback:
                logger.warning("Inference API key is missing; returning mock analysis instead of calling the API.")
                return build_mock_analysis(language)
            raise ConfigurationError("Server misconfiguration: API key missing")

        payload = build_analysis_request(data_url, language, self.model, self.max_tokens)
        try:
            text = await self.client.complete(payload)
        except UnknownModelError as e:
            if not self.mock_fallback:
                raise
            logger.warning(f"Model '{self.model}' not found, falling back to mock analysis: {e.detail}")
            return build_mock_analysis(language)

        return extract_analysis(text)


@lru_cache()
def get_analyzer_service() -> PlantAnalyzerService:
    """Return the process-wide analyzer service"""
    return PlantAnalyzerService.from_settings(get_settings())
