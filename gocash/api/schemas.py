"""
Pydantic schemas for API requests and responses
"""

from decimal import Decimal
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ..models import Installment, Periodicity, Role


# Auth schemas
class LoginRequest(BaseModel):
    email: str
    password: str
    role: Role


# User schemas
class CreateTeamMemberRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: Optional[str] = None  # Falls back to the configured default password
    assigned_capital: int = Field(1000000, ge=0)
    profit_margin: int = Field(10, ge=0, le=100)
    route_id: Optional[str] = None


class UpdateUserRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    assigned_capital: Optional[int] = Field(None, ge=0)
    profit_margin: Optional[int] = Field(None, ge=0, le=100)
    route_id: Optional[str] = None


class CreateClientRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: Optional[str] = None


# Loan schemas
class CreateLoanRequest(BaseModel):
    client_id: str
    principal: int
    periodicity: Periodicity
    total_rate: Optional[Decimal] = Field(None, description="Flat rate for the whole term, 0.20 = 20%")
    installments_count: Optional[int] = None
    route_id: Optional[str] = None
    start_date: Optional[str] = None  # ISO datetime string


# Support schemas
class SupportTicketRequest(BaseModel):
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


def installment_payload(installment: Installment, now=None) -> Dict[str, Any]:
    """Installment as JSON with the derived overdue flag when ``now`` is given"""
    data = installment.to_dict()
    if now is not None:
        data["is_overdue"] = installment.is_overdue(now)
    return data
