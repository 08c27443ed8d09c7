"""
Team management endpoints

Owners manage supervisors and supervisors manage collectors; each manager
only sees and edits the users they created.
"""

import uuid
from dataclasses import asdict
from fastapi import APIRouter, HTTPException, Depends, status

from .auth import GoCashSystem, get_system, require_view
from .schemas import CreateTeamMemberRequest, UpdateUserRequest
from ..errors import PermissionDenied, UnknownUser
from ..models import User
from ..portfolio import collector_stats
from ..rbac import View, can_manage, make_credentials, managed_role
from ..seed import avatar_for


router = APIRouter()


@router.get("/team")
async def list_team(
    user: User = Depends(require_view(View.ADMIN)),
    system: GoCashSystem = Depends(get_system)
):
    """Managed users with the collection stats of their loans"""
    try:
        role = managed_role(user.role)
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=str(e))

    loans = system.store.loans
    installments = system.store.installments
    now = system.now()

    team = []
    for member in system.store.children_of(user.id, role):
        data = member.public_dict()
        data["stats"] = asdict(collector_stats(member.id, loans, installments, now))
        team.append(data)

    return {"role": role.value, "users": team}


@router.post("/team", status_code=status.HTTP_201_CREATED)
async def create_team_member(
    request: CreateTeamMemberRequest,
    user: User = Depends(require_view(View.ADMIN)),
    system: GoCashSystem = Depends(get_system)
):
    """Create a supervisor (as owner) or a collector (as supervisor)"""
    try:
        role = managed_role(user.role)
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=str(e))

    try:
        password_hash, password_salt = make_credentials(request.password or system.config.default_password)
        member = system.store.add_user(User(
            id=f"u-{uuid.uuid4().hex[:12]}",
            name=request.name,
            email=request.email,
            role=role,
            password_hash=password_hash,
            password_salt=password_salt,
            avatar=avatar_for(request.name),
            parent_id=user.id,
            assigned_capital=request.assigned_capital,
            profit_margin=request.profit_margin,
            route_id=request.route_id,
        ), acting_user_id=user.id)

        return {
            "user": member.public_dict(),
            "message": "User created successfully"
        }

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{user_id}")
async def update_team_member(
    user_id: str,
    request: UpdateUserRequest,
    user: User = Depends(require_view(View.ADMIN)),
    system: GoCashSystem = Depends(get_system)
):
    """Update a user created by the caller"""
    try:
        member = system.store.get_user(user_id)
    except UnknownUser as e:
        raise HTTPException(status_code=404, detail=str(e))

    if not can_manage(user, member):
        raise HTTPException(status_code=403, detail="Users can only be edited by the manager who created them")

    changes = request.model_dump(exclude_none=True)
    password = changes.pop("password", None)
    if password:
        changes["password_hash"], changes["password_salt"] = make_credentials(password)

    updated = system.store.update_user(member.evolve(**changes), acting_user_id=user.id)
    return {
        "user": updated.public_dict(),
        "message": "User updated successfully"
    }
