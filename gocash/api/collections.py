"""
Collector endpoints: clients, daily route, payments and reminders
"""

import uuid
from dataclasses import asdict
from fastapi import APIRouter, BackgroundTasks, HTTPException, Depends, status

from .auth import GoCashSystem, check_loan_access, get_system, logger, require_view
from .schemas import CreateClientRequest, installment_payload
from ..errors import InstallmentAlreadyPaid, UnknownEntity
from ..logging_config import log_action
from ..models import Role, User
from ..payments import build_payment_reminder
from ..portfolio import loan_stats, loans_for_collector, pending_installments
from ..rbac import View, make_credentials
from ..seed import avatar_for


router = APIRouter()


@router.get("/clients")
async def list_clients(
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """Clients registered by the caller"""
    clients = system.store.children_of(user.id, Role.CLIENT)
    return {"clients": [client.public_dict() for client in clients]}


@router.post("/clients", status_code=status.HTTP_201_CREATED)
async def create_client(
    request: CreateClientRequest,
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """Register a new client under the caller"""
    try:
        password_hash, password_salt = make_credentials(request.password or system.config.default_password)
        client = system.store.add_user(User(
            id=f"cli-{uuid.uuid4().hex[:12]}",
            name=request.name,
            email=request.email,
            role=Role.CLIENT,
            password_hash=password_hash,
            password_salt=password_salt,
            avatar=avatar_for(request.name),
            parent_id=user.id,
        ), acting_user_id=user.id)

        return {
            "client": client.public_dict(),
            "message": "Client created successfully"
        }

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/route")
async def get_route(
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """
    Pending installments to collect, earliest due first.

    Collectors see their own loans; supervisors and owners see every loan.
    The stats cover the listed loans.
    """
    store = system.store
    now = system.now()
    loans = store.loans
    if user.role == Role.COLLECTOR:
        loans = loans_for_collector(user.id, loans)

    loans_by_id = {loan.id: loan for loan in loans}
    route = []
    for installment in pending_installments(loans, store.installments):
        loan = loans_by_id[installment.loan_id]
        client = store.find_user(loan.client_id)
        data = installment_payload(installment, now)
        data["client_id"] = loan.client_id
        data["client_name"] = client.name if client else None
        route.append(data)

    stats = loan_stats(loans, store.installments, now)
    return {"installments": route, "stats": asdict(stats)}


@router.post("/installments/{installment_id}/payment")
async def confirm_installment_payment(
    installment_id: str,
    background_tasks: BackgroundTasks,
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """Confirm full cash payment of an installment"""
    try:
        loan = system.store.get_loan(system.store.get_installment(installment_id).loan_id)
    except UnknownEntity as e:
        raise HTTPException(status_code=404, detail=str(e))
    check_loan_access(user, loan)

    try:
        payment, installment = system.store.record_payment(installment_id, collector_id=user.id)
    except UnknownEntity as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InstallmentAlreadyPaid as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(system.refresh_advice)

    return {
        "payment": payment.to_dict(),
        "installment": installment.to_dict(),
        "message": "Payment confirmed successfully"
    }


@router.post("/installments/{installment_id}/reminder")
async def send_payment_reminder(
    installment_id: str,
    user: User = Depends(require_view(View.COLLECTOR)),
    system: GoCashSystem = Depends(get_system)
):
    """Build the reminder message for an installment's client"""
    try:
        installment = system.store.get_installment(installment_id)
        loan = system.store.get_loan(installment.loan_id)
    except UnknownEntity as e:
        raise HTTPException(status_code=404, detail=str(e))
    check_loan_access(user, loan)

    if installment.is_paid:
        raise HTTPException(status_code=400, detail=f"Installment {installment_id} is already paid")

    client = system.store.find_user(loan.client_id)
    message = build_payment_reminder(installment, client.name if client else "cliente", system.currency)

    log_action(
        logger, "info", "Payment reminder sent",
        user_id=user.id, action="reminder_sent", resource=f"installment:{installment_id}",
        extra={"client_id": loan.client_id}
    )

    return {
        "installment_id": installment_id,
        "client_id": loan.client_id,
        "message": message
    }
