# backend/slotbook/routers/deep_link.py
"""
Public deep-link check: GET /book/resolve?date=2024-06-04&hour=19.5
"""

from fastapi import APIRouter, Depends, Query

from ..deps import get_resolver
from ..schemas.slots import DeepLinkResponse
from ..services.slots import Bookable, DeepLinkResolver


router = APIRouter(prefix="/book", tags=["book"])


@router.get("/resolve", response_model=DeepLinkResponse)
def resolve_deep_link(
    target_date: str = Query(..., alias="date"),
    hour: str = Query(...),
    resolver: DeepLinkResolver = Depends(get_resolver),
):
    decision = resolver.resolve(target_date, hour)
    if isinstance(decision, Bookable):
        return DeepLinkResponse(bookable=True, slot=decision.slot)
    return DeepLinkResponse(bookable=False)
