from fastapi import APIRouter

from app.api.deps import EntityServiceDep
from app.api.v1.schemas import AccountDataDeleted


router = APIRouter(tags=["account"])


@router.delete("/account/data", response_model=AccountDataDeleted)
def delete_account_data(service=EntityServiceDep):
    """Remove every project the caller owns, with the full project cascade for each."""
    return AccountDataDeleted(projects_deleted=service.delete_user_data())
