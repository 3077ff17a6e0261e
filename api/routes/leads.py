"""
Lead Scoring API Routes.
"""

import logging
from typing import List, Dict, Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from lead_scoring.records import LeadStatus
from ..services import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


# Models
class ParseRequest(BaseModel):
    """Message parse request."""
    message: str
    instagram_handle: Optional[str] = None


class ParseResponse(BaseModel):
    """Parsed message plus the lead-creation decision."""
    parsed: Dict[str, Any]
    should_create_lead: bool
    lead_notes: Optional[str] = None


class RescoreRequest(BaseModel):
    """Batch rescore request."""
    statuses: Optional[List[str]] = Field(
        default=None,
        description="Lead statuses to rescore (defaults to active statuses)",
    )


class RescoreResponse(BaseModel):
    """Batch rescore outcome."""
    total: int
    updated: int
    failed: int


def _get_engine():
    engine = get_services().engine
    if engine is None:
        raise HTTPException(status_code=503, detail="Lead store not configured")
    return engine


@router.post("/leads/parse", response_model=ParseResponse)
async def parse_lead_message(request: ParseRequest):
    """
    Parse an inbound DM and decide whether it warrants a new lead.

    The quick score here is only a creation gate; the canonical score comes
    from the scoring endpoints.
    """
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message must not be empty")

    parser = get_services().message_parser
    parsed = parser.parse(request.message)
    create = parser.should_create_lead(parsed)

    notes = None
    if create and request.instagram_handle:
        notes = parser.generate_lead_notes(
            request.instagram_handle, [request.message], parsed
        )

    return ParseResponse(
        parsed=parsed.to_dict(),
        should_create_lead=create,
        lead_notes=notes,
    )


@router.get("/leads/{lead_id}/score")
async def get_lead_score(lead_id: str):
    """Score a lead without storing the result."""
    result = await _get_engine().score_lead(lead_id)
    return result.to_dict()


@router.post("/leads/{lead_id}/score")
async def update_lead_score(lead_id: str):
    """Recompute a lead's score and store score and quality."""
    result = await _get_engine().update_lead_score(lead_id)
    return result.to_dict()


@router.post("/leads/rescore", response_model=RescoreResponse)
async def rescore_leads(request: Optional[RescoreRequest] = None):
    """Rescore every lead in the requested statuses, one at a time."""
    statuses = None
    if request and request.statuses:
        try:
            statuses = [LeadStatus(s.strip().upper()) for s in request.statuses]
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Unknown lead status: {e}")

    summary = await _get_engine().rescore_all(statuses)
    return RescoreResponse(**summary.to_dict())
