# botanai/i18n.py
"""User-facing messages in the supported languages."""
from typing import Dict

from botanai.models.plant_analysis import Language

MESSAGES: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "analyze_error": "Analysis failed",
        "analyze_error_detail": "We could not analyze this image. Please try again.",
        "config_error": "The analysis service is not configured.",
        "decode_error": "The file could not be read as an image.",
    },
    Language.FR: {
        "analyze_error": "Échec de l'analyse",
        "analyze_error_detail": "Impossible d'analyser cette image. Veuillez réessayer.",
        "config_error": "Le service d'analyse n'est pas configuré.",
        "decode_error": "Le fichier n'a pas pu être lu comme une image.",
    },
}


def translate(key: str, language: Language) -> str:
    return MESSAGES[Language(language)][key]
