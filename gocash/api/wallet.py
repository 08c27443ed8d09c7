"""
Client wallet endpoint
"""

from fastapi import APIRouter, Depends

from .auth import GoCashSystem, get_system, require_view
from .schemas import installment_payload
from ..models import User
from ..portfolio import client_wallet
from ..rbac import View


router = APIRouter()


@router.get("")
async def get_wallet(
    user: User = Depends(require_view(View.CLIENT)),
    system: GoCashSystem = Depends(get_system)
):
    """Balance, next payment and progress of the caller's own loans"""
    wallet = client_wallet(user.id, system.store.loans, system.store.installments)
    now = system.now()

    return {
        "balance": str(wallet.balance),
        "next_payment": installment_payload(wallet.next_payment, now) if wallet.next_payment else None,
        "paid_count": wallet.paid_count,
        "installments_count": wallet.installments_count,
        "progress": wallet.progress,
        "installments": [installment_payload(i, now) for i in wallet.installments]
    }
