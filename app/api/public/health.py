from fastapi import APIRouter, Depends, HTTPException

from app.api.deps import get_resolver
from app.services.advisory_errors import AdvisoryError
from app.services.recommendation_resolver import RecommendationResolver


router = APIRouter(prefix="/healthz", tags=["health"])


@router.get("")
def healthz():
    return {"status": "ok"}


@router.get("/advisory")
def advisory_health(resolver: RecommendationResolver = Depends(get_resolver)):
    advisory = resolver.advisory
    if advisory is None:
        raise HTTPException(status_code=503, detail="llm_unavailable")
    try:
        reply = advisory.test_connection()
    except AdvisoryError as exc:
        raise HTTPException(status_code=503, detail="llm_unavailable") from exc
    return {"status": "ok", "reply": reply}
