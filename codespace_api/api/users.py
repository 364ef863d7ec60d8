from __future__ import annotations

from fastapi import APIRouter, Depends

from codespace_api.api.utils import failure_status
from codespace_api.models import AccountCreate, AccountCreated, AccountRead, MessageRead
from codespace_api.services.accounts import AccountWorkflow, get_workflow

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("", response_model=AccountCreated, dependencies=[Depends(failure_status(400))])
def create_user(payload: AccountCreate, workflow: AccountWorkflow = Depends(get_workflow)) -> AccountCreated:
    return workflow.create_account(payload.username)


@router.get("/{username}", response_model=AccountRead, dependencies=[Depends(failure_status(404))])
def get_user(username: str, workflow: AccountWorkflow = Depends(get_workflow)) -> AccountRead:
    return workflow.get_account(username)


@router.delete("/{username}", response_model=MessageRead, dependencies=[Depends(failure_status(400))])
def delete_user(username: str, workflow: AccountWorkflow = Depends(get_workflow)) -> MessageRead:
    workflow.delete_account(username)
    return MessageRead(message="User deleted successfully")
