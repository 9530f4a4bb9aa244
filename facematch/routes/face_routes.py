from fastapi import APIRouter, Depends, Request

from ..matcher import BELOW_THRESHOLD, NO_ENROLLMENTS, THROTTLED, Matched, MatchResult
from ..schemas import (
    AutoMatchRequest,
    EnrollRequest,
    EnrollResponse,
    MatchRequest,
    MatchResponse,
    decode_portrait,
    encode_portrait,
)
from ..service import FaceMatchService

router = APIRouter(tags=["Face Matching"])

MESSAGES = {
    NO_ENROLLMENTS: "No registrations available.",
    BELOW_THRESHOLD: "No matching face found.",
    THROTTLED: "Throttled.",
}


def get_service(request: Request) -> FaceMatchService:
    return request.app.state.service


def to_response(result: MatchResult) -> MatchResponse:
    if isinstance(result, Matched):
        return MatchResponse(
            matchFound=True,
            name=result.record.name,
            similarity=min(max(result.similarity, 0.0), 1.0),
            portrait=encode_portrait(result.record.portrait),
        )
    return MatchResponse(matchFound=False, message=MESSAGES.get(result.reason, result.reason))


# ------------------------------
# POST /enroll
# ------------------------------
@router.post("/enroll", response_model=EnrollResponse)
@router.post("/register", response_model=EnrollResponse, include_in_schema=False)
def enroll(body: EnrollRequest, service: FaceMatchService = Depends(get_service)):
    portrait = decode_portrait(body.portrait)
    if body.samples is not None:
        record_id = service.enroll_samples(body.name, body.samples, portrait)
    else:
        record_id = service.enroll(body.name, body.embedding, portrait)
    return EnrollResponse(message="Registration successful.", id=record_id)


# ------------------------------
# POST /match
# ------------------------------
@router.post("/match", response_model=MatchResponse, response_model_exclude_none=True)
def match(body: MatchRequest, service: FaceMatchService = Depends(get_service)):
    if body.samples is not None:
        result = service.match_samples(body.samples)
    else:
        result = service.match(body.embedding)
    return to_response(result)


# ------------------------------
# POST /match/auto (throttled)
# ------------------------------
@router.post("/match/auto", response_model=MatchResponse, response_model_exclude_none=True)
def auto_match(body: AutoMatchRequest, service: FaceMatchService = Depends(get_service)):
    return to_response(service.auto_match(body.embedding, session=body.session))


@router.get("/health")
def health_check(service: FaceMatchService = Depends(get_service)):
    return {
        "status": "healthy",
        "storage": service.config.storage_backend,
        "enrollments": service.enrollment_count(),
    }
