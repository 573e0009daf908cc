# botanai/api/routes.py
import logging
from typing import Any, Dict, List, Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from botanai.config import get_settings, Settings
from botanai.i18n import translate
from botanai.models.plant_analysis import HistoryItem, Language, PlantAnalysis
from botanai.services.analyzer import get_analyzer_service, PlantAnalyzerService
from botanai.services.extractor import ExtractionError
from botanai.services.history import HistoryStoreError
from botanai.services.inference import ConfigurationError, UpstreamError
from botanai.services.normalizer import ImageDecodeError

router = APIRouter()
logger = logging.getLogger(__name__)

SUPPORTED_CONTENT_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif"]


@router.post(
    "/analyze",
    response_model=PlantAnalysis,
    summary="Identify a plant and assess its health",
    description="Upload a plant photo and get its identification, diagnosis and care instructions",
)
async def analyze_plant_image(
        file: UploadFile = File(...),
        language: Optional[Language] = Form(None),
        settings: Settings = Depends(get_settings),
        analyzer: PlantAnalyzerService = Depends(get_analyzer_service),
) -> PlantAnalysis:
    """
    API endpoint for plant image analysis.

    Args:
        file: The uploaded image file.
        language: Language of the free-text fields, defaults to DEFAULT_LANGUAGE.
        settings: Application settings.
        analyzer: Analyzer service.

    Returns:
        The stored analysis.
    """
    language = language or settings.DEFAULT_LANGUAGE

    if file.content_type not in SUPPORTED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Only {', '.join(SUPPORTED_CONTENT_TYPES)} allowed."
        )

    if file.size is not None and file.size > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.MAX_UPLOAD_SIZE // 1024 // 1024} MB."
        )

    image_bytes = await file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    try:
        return await analyzer.analyze_image(image_bytes, language)
    except ImageDecodeError as e:
        logger.warning(f"Rejected undecodable upload {file.filename}: {e}")
        raise HTTPException(status_code=422, detail={
            "message": translate("decode_error", language),
            "error": str(e),
        })
    except ExtractionError as e:
        # Model reply shown verbatim
        raise HTTPException(status_code=422, detail={
            "message": e.detail,
            "error": "extraction_error",
        })
    except ConfigurationError as e:
        logger.error(f"Analysis service misconfigured: {e}")
        raise HTTPException(status_code=503, detail={
            "message": translate("config_error", language),
            "error": str(e),
        })
    except UpstreamError as e:
        logger.error(f"Inference provider call failed: {e}", exc_info=True)
        raise HTTPException(status_code=502, detail={
            "title": translate("analyze_error", language),
            "message": translate("analyze_error_detail", language),
            "error": e.detail,
            "upstream_status": e.status_code,
        })
    except HistoryStoreError as e:
        logger.error(f"Could not persist analysis: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Could not save analysis: {e}")
    except Exception as e:
        logger.error(f"Error during image analysis: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Error during image analysis: {str(e)}")


@router.get("/history", response_model=List[PlantAnalysis], summary="List past analyses, newest first")
async def list_history(analyzer: PlantAnalyzerService = Depends(get_analyzer_service)) -> List[PlantAnalysis]:
    return analyzer.history.items()


@router.get("/history/summary", response_model=List[HistoryItem], summary="Compact list of past analyses")
async def list_history_summary(analyzer: PlantAnalyzerService = Depends(get_analyzer_service)) -> List[HistoryItem]:
    return analyzer.history.summaries()


@router.get("/history/{record_id}", response_model=PlantAnalysis, summary="Get one past analysis")
async def get_history_item(
        record_id: str,
        analyzer: PlantAnalyzerService = Depends(get_analyzer_service),
) -> PlantAnalysis:
    record = analyzer.history.get(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Analysis not found.")
    return record


@router.delete("/history", summary="Clear the analysis history")
async def clear_history(analyzer: PlantAnalyzerService = Depends(get_analyzer_service)) -> Dict[str, Any]:
    try:
        analyzer.history.clear()
    except HistoryStoreError as e:
        logger.error(f"Could not clear history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "cleared"}


@router.post(
    "/claude",
    summary="Inference provider proxy",
    description="Forward a Messages request with the server-held credential and return the upstream answer unchanged",
)
async def proxy_inference(
        request: Request,
        analyzer: PlantAnalyzerService = Depends(get_analyzer_service),
) -> Response:
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Request body must be JSON"})

    try:
        upstream = await analyzer.client.forward(body)
    except ConfigurationError as e:
        logger.error(f"Proxy called without credential: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except httpx.HTTPError as e:
        logger.error(f"Upstream call to the inference provider failed: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={
            "error": "Upstream call to the inference provider failed",
            "details": str(e),
        })

    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
    )


@router.get(
    "/health",
    summary="API health status",
    description="Check if the analysis service is available"
)
async def health_check(analyzer: PlantAnalyzerService = Depends(get_analyzer_service)) -> Dict[str, Any]:
    return {
        "status": "healthy",
        "service": "botanai",
        "version": "0.1.0",
        "inference_configured": analyzer.client.configured,
        "history_entries": len(analyzer.history),
    }
