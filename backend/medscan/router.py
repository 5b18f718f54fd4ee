"""
Medicine Router - Photo Identification Endpoints

Two-step flow:
1. verify-name / verify-multi-name: quick analysis, the user confirms the name
2. comprehensive-details: full extraction plus multi-source aggregation

Photo-free lookups: search (by name), ndc/{ndc} and lookup (from a scan).
"""

import logging
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .application.services.medicine_analysis_service import MedicineAnalysisService
from .application.services.medicine_lookup_service import MedicineLookupService
from .config.settings import get_default_config
from .cross_cutting.safety.disclaimers import DisclaimerInjector
from .cross_cutting.validation import (
    decode_images,
    validate_verified_name,
    validate_search_name,
    validate_ndc,
    MAX_IMAGES,
)
from .domain.entities.analysis_response import AnalysisResponse, DEFAULT_DISCLAIMER
from .domain.entities.vision_result import AnalysisMode
from .domain.exceptions import DomainException, InvalidInputError, ValidationError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/medicine", tags=["Medicine"])

_service: Optional[MedicineAnalysisService] = None
_lookup_service: Optional[MedicineLookupService] = None


def get_service() -> MedicineAnalysisService:
    """Lazily build the service from environment configuration."""
    global _service
    if _service is None:
        _service = MedicineAnalysisService.from_config(get_default_config())
        logger.info(f"Medicine analysis service ready (model={_service.analyzer.model_name})")
    return _service


def get_lookup_service() -> MedicineLookupService:
    global _lookup_service
    if _lookup_service is None:
        _lookup_service = MedicineLookupService.from_config(get_default_config().sources)
    return _lookup_service


def close_service() -> None:
    """Close the lazily built services, if any; called on application shutdown."""
    global _service, _lookup_service
    if _service is not None:
        _service.close()
        _service = None
    if _lookup_service is not None:
        _lookup_service.close()
        _lookup_service = None


# ============ Request/Response Models ============

class VerifyNameRequest(BaseModel):
    """Single photo for quick name verification."""
    image: str  # base64 or data URL


class VerifyMultiNameRequest(BaseModel):
    """Up to three photos (front, back, side) for quick name verification."""
    images: List[str] = Field(default_factory=list)


class ComprehensiveDetailsRequest(BaseModel):
    """Photos plus the name the user confirmed."""
    model_config = ConfigDict(populate_by_name=True)

    images: List[str] = Field(default_factory=list)
    verified_name: Optional[str] = Field(default=None, alias="verifiedName")


class AnalyzeRequest(BaseModel):
    """Photos with an optional confirmed name; quick mode without one."""
    model_config = ConfigDict(populate_by_name=True)

    images: List[str] = Field(default_factory=list)
    verified_name: Optional[str] = Field(default=None, alias="verifiedName")


class LookupRequest(BaseModel):
    """Result of an earlier scan; the brand or generic name is searched."""
    model_config = ConfigDict(populate_by_name=True)

    scan_data: Optional[Dict[str, Any]] = Field(default=None, alias="scanData")


class AnalysisEnvelope(BaseModel):
    """Response body of every analysis endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    analysis: Dict[str, Any]
    medicine_info: Dict[str, Any] = Field(alias="medicineInfo")
    request_id: str = Field(default="", alias="requestId")
    processing_time_ms: float = Field(default=0.0, alias="processingTimeMs")
    timestamp: str
    disclaimer: str = DEFAULT_DISCLAIMER
    localized_disclaimer: Optional[str] = Field(default=None, alias="localizedDisclaimer")
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    vision_model: str
    sources: List[str] = Field(default_factory=list)
    disclaimer: str = DEFAULT_DISCLAIMER


# ============ Helper Functions ============

def _bad_request(error: DomainException) -> JSONResponse:
    """HTTP 400 body that still carries the disclaimer."""
    payload = {"error": error.message, "details": error.details}
    return JSONResponse(status_code=400, content=DisclaimerInjector().ensure_payload(payload))


def _envelope(response: AnalysisResponse) -> JSONResponse:
    body = AnalysisEnvelope(**response.to_dict())
    return JSONResponse(content=body.model_dump(by_alias=True, exclude_none=False))


def _run(
    service: MedicineAnalysisService,
    payloads: List[str],
    mode: AnalysisMode,
    verified_name: Optional[str] = None
) -> JSONResponse:
    try:
        images = decode_images(payloads)
        if mode == AnalysisMode.COMPREHENSIVE:
            is_valid, error = validate_verified_name(verified_name)
            if not is_valid:
                raise InvalidInputError("verifiedName", error)
    except ValidationError as e:
        logger.warning(f"Rejected {mode.value} request: {e}")
        return _bad_request(e)

    response = service.analyze(images, mode, verified_name.strip() if verified_name else None)
    return _envelope(response)


# ============ Endpoints ============

@router.post("/verify-name", response_model=AnalysisEnvelope)
def verify_name(request: VerifyNameRequest, service: MedicineAnalysisService = Depends(get_service)):
    """Quick single-image identification for the user to confirm."""
    return _run(service, [request.image], AnalysisMode.QUICK)


@router.post("/verify-multi-name", response_model=AnalysisEnvelope)
def verify_multi_name(request: VerifyMultiNameRequest, service: MedicineAnalysisService = Depends(get_service)):
    """Quick identification across up to three images, flagging inconsistencies."""
    if len(request.images) > MAX_IMAGES:
        return _bad_request(InvalidInputError("images", f"at most {MAX_IMAGES} images are accepted"))
    return _run(service, request.images, AnalysisMode.QUICK)


@router.post("/comprehensive-details", response_model=AnalysisEnvelope)
def comprehensive_details(
    request: ComprehensiveDetailsRequest,
    service: MedicineAnalysisService = Depends(get_service)
):
    """Full extraction and multi-source profile for a confirmed name."""
    return _run(service, request.images, AnalysisMode.COMPREHENSIVE, request.verified_name)


@router.post("/analyze", response_model=AnalysisEnvelope)
def analyze(request: AnalyzeRequest, service: MedicineAnalysisService = Depends(get_service)):
    """Comprehensive when a confirmed name is supplied, quick otherwise."""
    has_name = bool(request.verified_name and request.verified_name.strip())
    mode = AnalysisMode.COMPREHENSIVE if has_name else AnalysisMode.QUICK
    return _run(service, request.images, mode, request.verified_name)


@router.get("/health", response_model=HealthResponse)
def health(service: MedicineAnalysisService = Depends(get_service)):
    sources = []
    if service.engine is not None:
        sources = [adapter.display_name for adapter in service.engine.adapters.values()]
    return HealthResponse(
        status="healthy",
        vision_model=service.analyzer.model_name,
        sources=sources,
    )


# ============ Lookup Endpoints ============

def _lookup_body(data: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(content=DisclaimerInjector().ensure_payload(data))


@router.get("/search")
def search(q: Optional[str] = None, lookup: MedicineLookupService = Depends(get_lookup_service)):
    """Medicines matching a name, most relevant first."""
    is_valid, error = validate_search_name(q)
    if not is_valid:
        return _bad_request(InvalidInputError("q", error))
    return _lookup_body(lookup.search(q).to_dict())


@router.get("/ndc/{ndc}")
def ndc_lookup(ndc: str, lookup: MedicineLookupService = Depends(get_lookup_service)):
    """Product details for a National Drug Code."""
    is_valid, error = validate_ndc(ndc)
    if not is_valid:
        return _bad_request(InvalidInputError("ndc", error))
    return _lookup_body(lookup.by_ndc(ndc).to_dict())


@router.post("/lookup")
def lookup_scan(request: LookupRequest, lookup: MedicineLookupService = Depends(get_lookup_service)):
    """Name search seeded from a previous scan's brand or generic name."""
    if not request.scan_data:
        return _bad_request(InvalidInputError("scanData", "scan data is required"))
    medicine = request.scan_data.get("medicine") or {}
    name = None
    if isinstance(medicine, dict):
        name = medicine.get("brandName") or medicine.get("genericName")
    if not isinstance(name, str) or not name.strip():
        return _bad_request(InvalidInputError("scanData", "no medicine name found in scan data"))
    return _lookup_body(lookup.search(name).to_dict())
