# botanai/models/__init__.py
# Imports for easier usage
from botanai.models.plant_analysis import (
    CareInstructions,
    HealthStatus,
    HistoryItem,
    ImageBudget,
    Language,
    NormalizedImage,
    PlantAnalysis,
)
