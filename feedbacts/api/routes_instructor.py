from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.services.response_service import get_shared_response_details, get_shared_responses

router = APIRouter()


@router.get("/shared-responses")
def shared_responses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "forms": get_shared_responses(db, user)}


@router.get("/shared-responses/{form_id}/responses")
def shared_response_details(form_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, **get_shared_response_details(db, form_id, user)}
