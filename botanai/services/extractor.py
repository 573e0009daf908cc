# botanai/services/extractor.py
import json
import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from botanai.models.plant_analysis import PlantAnalysis

logger = logging.getLogger(__name__)

# Keys the service owns; whatever the model sends for them is dropped
RESERVED_KEYS = ("id", "timestamp", "image", "isMock", "is_mock")


class ExtractionError(ValueError):
    """Raised when a model reply cannot be turned into a PlantAnalysis.

    ``detail`` is the text to show the user: the model's own reply when it
    contained no JSON at all (typically a refusal or an explanation), or a
    description of the schema violation otherwise.
    """

    def __init__(self, detail: str, raw_text: str = ""):
        super().__init__(detail)
        self.detail = detail
        self.raw_text = raw_text


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_reply(text: str) -> Dict[str, Any]:
    """
    Locate and parse the JSON object in a model reply.

    The whole reply is tried first. Failing that, the slice between the first
    "{" and the last "}" is tried, which covers prose around the JSON and
    markdown fences. If neither parses, the reply itself becomes the error.
    """
    parsed = _loads_object(text)
    if parsed is not None:
        return parsed

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        parsed = _loads_object(text[start:end + 1])
        if parsed is not None:
            return parsed

    raise ExtractionError(text.strip() or "Empty reply from the model.", raw_text=text)


def extract_analysis(
        text: str,
        now: Optional[Callable[[], float]] = None,
        id_factory: Optional[Callable[[], str]] = None,
) -> PlantAnalysis:
    """
    Turn a raw model reply into a validated PlantAnalysis.

    Args:
        text: Raw reply text.
        now: Clock returning epoch seconds, ``time.time`` by default.
        id_factory: Identifier generator, random UUID4 strings by default.

    Raises:
        ExtractionError: If no JSON object can be found or it does not match the schema.
    """
    payload = parse_reply(text)
    for key in RESERVED_KEYS:
        payload.pop(key, None)

    payload["id"] = (id_factory or (lambda: str(uuid.uuid4())))()
    payload["timestamp"] = int((now or time.time)() * 1000)

    try:
        return PlantAnalysis.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        logger.warning(f"Model reply does not match the analysis schema: {problems}")
        raise ExtractionError(f"Model reply does not match the analysis schema: {problems}", raw_text=text) from e
