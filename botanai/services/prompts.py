# botanai/services/prompts.py
import re
from typing import Any, Dict, Tuple, Union

from botanai.models.plant_analysis import Language, NormalizedImage

DEFAULT_MEDIA_TYPE = "image/jpeg"
DATA_URL_HEADER = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,")

RESPONSE_SCHEMA = """{
  "scientificName": string,
  "commonName": string,
  "confidence": number, // between 0 and 1
  "healthStatus": "Healthy" | "Sick" | "Unknown",
  "diagnosis": string,
  "symptoms": string[],
  "treatment": string[],
  "careInstructions": {
    "water": string,
    "light": string,
    "temperature": string,
    "humidity": string
  },
  "funFact": string
}"""

LANGUAGE_INSTRUCTIONS = {
    Language.EN: (
        "Write every free-text value (commonName, diagnosis, symptoms, treatment, "
        "careInstructions, funFact) in English. 'healthStatus' MUST be exactly "
        "'Healthy', 'Sick' or 'Unknown'."
    ),
    Language.FR: (
        "Rédige toutes les valeurs textuelles (commonName, diagnosis, symptoms, treatment, "
        "careInstructions, funFact) en français, SAUF 'healthStatus' qui DOIT être "
        "exactement 'Healthy', 'Sick' ou 'Unknown' (ne traduis PAS cette valeur)."
    ),
}

USER_PROMPTS = {
    Language.EN: "Analyze this plant image and fill in the requested JSON.",
    Language.FR: "Analyse cette image de plante et remplis le JSON demandé.",
}


def split_data_url(image: str) -> Tuple[str, str]:
    """Return (media_type, base64 body) of a data URL or a bare base64 string."""
    match = DATA_URL_HEADER.match(image)
    if not match:
        return DEFAULT_MEDIA_TYPE, image
    return match.group(1), image[match.end():]


def build_system_prompt(language: Language) -> str:
    return f"""You are an expert botanist and plant pathologist.

Given an image of a plant (or of something that may not be a plant), ALWAYS return a SINGLE JSON object with EXACTLY this shape and nothing else:

{RESPONSE_SCHEMA}

Rules:
- Do not add any text before or after the JSON.
- Do not wrap the JSON in markdown or backticks.
- "healthStatus" is one of "Healthy", "Sick", "Unknown" in every language.
- If the image does not show a plant, or you are unsure, set "healthStatus" to "Unknown" and still return a FULL, valid JSON object.
{LANGUAGE_INSTRUCTIONS[Language(language)]}"""


def build_analysis_request(
        image: Union[NormalizedImage, str],
        language: Language,
        model: str,
        max_tokens: int = 800,
) -> Dict[str, Any]:
    """
    Build the Messages API payload for one plant analysis.

    Args:
        image: Normalized image, or a data URL / bare base64 string.
        language: Language of the free-text fields in the reply.
        model: Model identifier.
        max_tokens: Token budget of the reply.

    Returns:
        JSON-serializable request body.
    """
    language = Language(language)
    data_url = image.data_url if isinstance(image, NormalizedImage) else image
    media_type, body = split_data_url(data_url)

    return {
        "model": model,
        "max_tokens": max_tokens,
        "system": build_system_prompt(language),
        "messages": [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image",
                        "source": {
                            "type": "base64",
                            "media_type": media_type,
                            "data": body,
                        },
                    },
                    {
                        "type": "text",
                        "text": USER_PROMPTS[language],
                    },
                ],
            }
        ],
    }
