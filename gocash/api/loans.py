"""
Loan endpoints
"""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, status

from .auth import GoCashSystem, check_client_access, check_loan_access, get_system, require_view
from .schemas import CreateLoanRequest, installment_payload
from ..errors import UnknownEntity
from ..models import Role, User
from ..rbac import View
from ..schedule import DEFAULT_LOAN_CONFIGS


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_loan(
    request: CreateLoanRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """
    Originate a loan for a client and generate its schedule.

    Rate and installment count default to the standard offer for the
    chosen periodicity. Collectors lend only to clients they registered.
    """
    try:
        client = system.store.get_user(request.client_id)
    except UnknownEntity as e:
        raise HTTPException(status_code=404, detail=str(e))

    if client.role != Role.CLIENT:
        raise HTTPException(status_code=400, detail=f"User {client.id} is not a client")
    check_client_access(user, client)

    defaults = DEFAULT_LOAN_CONFIGS[request.periodicity]
    try:
        loan, schedule = system.store.originate_loan(
            client_id=client.id,
            collector_id=user.id,
            principal=request.principal,
            total_rate=request.total_rate if request.total_rate is not None else defaults.rate,
            periodicity=request.periodicity,
            installments_count=(request.installments_count
                                if request.installments_count is not None else defaults.installments),
            route_id=request.route_id,
            start_date=request.start_date,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(system.refresh_advice)

    return {
        "loan": loan.to_dict(),
        "installments": [installment.to_dict() for installment in schedule],
        "message": "Loan originated successfully"
    }


@router.get("/{loan_id}")
async def get_loan(
    loan_id: str,
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """Get loan details with its schedule"""
    try:
        loan = system.store.get_loan(loan_id)
    except UnknownEntity:
        raise HTTPException(status_code=404, detail="Loan not found")
    check_loan_access(user, loan)

    now = system.now()
    return {
        "loan": loan.to_dict(),
        "installments": [installment_payload(i, now) for i in system.store.installments_for_loan(loan.id)]
    }
