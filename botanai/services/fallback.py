# botanai/services/fallback.py
# Canned result used for local development when the provider cannot be called
import time
import uuid

from botanai.models.plant_analysis import (
    CareInstructions,
    HealthStatus,
    Language,
    PlantAnalysis,
)

MOCK_TEXTS = {
    Language.EN: {
        "common_name": "Golden pothos",
        "diagnosis": "Plant appears healthy",
        "symptoms": ["No visible stress"],
        "treatment": ["No treatment required"],
        "water": "Water when top inch of soil is dry",
        "light": "Bright, indirect light",
        "temperature": "65-80°F",
        "humidity": "Moderate humidity",
        "fun_fact": "Pothos is a popular, forgiving air-purifying houseplant.",
    },
    Language.FR: {
        "common_name": "Pothos doré",
        "diagnosis": "Plante en bonne santé",
        "symptoms": ["Aucun symptôme visible"],
        "treatment": ["Pas de traitement nécessaire"],
        "water": "Arroser quand le premier cm de terre est sec",
        "light": "Lumière indirecte vive",
        "temperature": "18-27°C",
        "humidity": "Humidité modérée",
        "fun_fact": "Le pothos est un purificateur d'air populaire et très tolérant.",
    },
}


def build_mock_analysis(language: Language = Language.EN) -> PlantAnalysis:
    """Return the fixed demo analysis, flagged with ``is_mock``."""
    texts = MOCK_TEXTS[Language(language)]
    return PlantAnalysis(
        id=str(uuid.uuid4()),
        timestamp=int(time.time() * 1000),
        scientific_name="Epipremnum aureum",
        common_name=texts["common_name"],
        confidence=0.92,
        health_status=HealthStatus.HEALTHY,
        diagnosis=texts["diagnosis"],
        symptoms=list(texts["symptoms"]),
        treatment=list(texts["treatment"]),
        care_instructions=CareInstructions(
            water=texts["water"],
            light=texts["light"],
            temperature=texts["temperature"],
            humidity=texts["humidity"],
        ),
        fun_fact=texts["fun_fact"],
        is_mock=True,
    )
