from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from easyprop.auth.firebase import AuthenticatedUser, get_current_user
from easyprop.db.base import get_db
from easyprop.services.revenue import RevenueService

router = APIRouter()


class RevenueRequest(BaseModel):
    amount: float
    property_id: Optional[str] = None
    lead_id: Optional[str] = None
    type: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    recurring: Optional[bool] = None
    tax_amount: Optional[float] = None
    tax_rate: Optional[float] = None
    net_amount: Optional[float] = None
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    received_at: Optional[datetime] = None
    due_date: Optional[datetime] = None


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_revenue(
    record: RevenueRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return RevenueService(db).add_revenue(user.uid, record.model_dump(exclude_none=True)).to_dict()


@router.get("")
async def list_revenue(
    timeframe: str = Query("all", description="all, month, quarter or year"),
    user: AuthenticatedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = RevenueService(db).get_user_revenue(user.uid, timeframe)
    return {**result, "records": [r.to_dict() for r in result["records"]]}
