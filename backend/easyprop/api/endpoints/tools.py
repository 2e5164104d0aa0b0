from fastapi import APIRouter, Query
from pydantic import BaseModel

from easyprop.utils.formatting import calculate_emi, format_currency, format_price

router = APIRouter()


class EMIResponse(BaseModel):
    emi: int
    total_amount: int
    total_interest: int
    emi_display: str
    total_amount_display: str
    total_interest_display: str
    principal_display: str


@router.get("/emi", response_model=EMIResponse)
async def emi_calculator(
    principal: float = Query(..., gt=0, description="Loan amount in rupees"),
    annual_rate: float = Query(..., ge=0, description="Annual interest rate in percent"),
    tenure_years: float = Query(..., gt=0, description="Loan tenure in years"),
):
    """Monthly instalment for a home loan."""
    result = calculate_emi(principal, annual_rate, tenure_years)
    return {
        **result,
        "emi_display": format_currency(result["emi"]),
        "total_amount_display": format_currency(result["total_amount"]),
        "total_interest_display": format_currency(result["total_interest"]),
        "principal_display": format_price(principal),
    }
