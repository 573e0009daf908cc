# botanai/services/__init__.py
# Import the Analyzer service
from botanai.services.analyzer import get_analyzer_service, PlantAnalyzerService
