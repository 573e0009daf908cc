from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Possible health statuses of an analyzed plant.

    The values are part of the contract with the model prompt and are never
    translated, whatever the response language.
    """
    HEALTHY = "Healthy"
    SICK = "Sick"
    UNKNOWN = "Unknown"


class Language(str, Enum):
    """Languages the analysis can be requested in"""
    EN = "en"
    FR = "fr"


class CareInstructions(BaseModel):
    """Care recommendations for the identified plant"""
    water: str = Field(..., description="Watering frequency and amount")
    light: str = Field(..., description="Light requirements")
    temperature: str = Field(..., description="Ideal temperature range")
    humidity: str = Field(..., description="Humidity requirements")


class PlantAnalysis(BaseModel):
    """Stored result of one plant analysis"""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique identifier of the analysis")
    timestamp: int = Field(..., description="Creation time in epoch milliseconds")
    scientific_name: str = Field(..., alias="scientificName")
    common_name: str = Field(..., alias="commonName")
    confidence: float = Field(
        ...,
        description="Confidence score of the identification (0-1)",
        ge=0.0,
        le=1.0
    )
    health_status: HealthStatus = Field(..., alias="healthStatus")
    diagnosis: str = Field(
        ...,
        description="Disease name, or a short statement that the plant is fine"
    )
    symptoms: List[str] = Field(default_factory=list)
    treatment: List[str] = Field(
        default_factory=list,
        description="Ordered treatment steps"
    )
    care_instructions: CareInstructions = Field(..., alias="careInstructions")
    fun_fact: str = Field("", alias="funFact")
    image: Optional[str] = Field(
        None,
        description="Data URL of the normalized image sent for analysis"
    )
    is_mock: bool = Field(
        False,
        alias="isMock",
        description="True when the result is the canned fallback, not a real inference"
    )


class HistoryItem(BaseModel):
    """Compact view of a history entry for list displays"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    timestamp: int
    common_name: str = Field(..., alias="commonName")
    health_status: HealthStatus = Field(..., alias="healthStatus")
    thumbnail: Optional[str] = None

    @classmethod
    def from_analysis(cls, analysis: PlantAnalysis) -> "HistoryItem":
        return cls(
            id=analysis.id,
            timestamp=analysis.timestamp,
            common_name=analysis.common_name,
            health_status=analysis.health_status,
            thumbnail=analysis.image,
        )


class ImageBudget(BaseModel):
    """Limits used to decide whether an upload has to be re-encoded"""
    model_config = ConfigDict(frozen=True)

    max_bytes: int = Field(2 * 1024 * 1024, gt=0, description="Maximum encoded size in bytes")
    max_dimension: int = Field(1600, gt=0, description="Maximum width or height in pixels")
    base_quality: int = Field(80, ge=1, le=95, description="JPEG quality of the first pass")
    reduced_quality: int = Field(70, ge=1, le=95, description="JPEG quality of the resize pass")


class NormalizedImage(BaseModel):
    """JPEG representation of an upload, ready to be sent to the model"""
    data_url: str
    media_type: str = "image/jpeg"
    width: int
    height: int
    estimated_bytes: int
    passes: int = Field(..., ge=1, le=2, description="Number of encode passes performed")
