"""
Support endpoints
"""

import uuid
from fastapi import APIRouter, Depends, status

from .auth import require_view, logger
from .schemas import SupportTicketRequest
from ..logging_config import log_action
from ..models import User
from ..rbac import View


router = APIRouter()


@router.post("/tickets", status_code=status.HTTP_201_CREATED)
async def open_ticket(
    request: SupportTicketRequest,
    user: User = Depends(require_view(View.SUPPORT))
):
    """Open a support ticket; tickets are recorded in the log only"""
    ticket_id = f"tk-{uuid.uuid4().hex[:8]}"

    log_action(
        logger, "info", "Support ticket opened",
        user_id=user.id, action="support_ticket", resource=f"ticket:{ticket_id}",
        extra={"subject": request.subject, "message": request.message}
    )

    return {
        "ticket_id": ticket_id,
        "status": "received",
        "message": "Ticket enviado con éxito"
    }
