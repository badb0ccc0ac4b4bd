from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_form_author
from feedbacts.core.rate_limit import form_submit_rate_limit
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.form_schema import DeployRequest, FormCreate, FormUpdate, SubmitRequest
from feedbacts.services import form_service, response_service

router = APIRouter()


@router.get("")
def list_forms(
    type: str = Query("all", pattern="^(all|templates|custom)$"),
    status_filter: str = Query("all", alias="status"),
    search: str = "",
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = form_service.list_forms(db, type, status_filter, search, page, limit)
    return {"success": True, **result}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_form(data: FormCreate, user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    result = form_service.create_form(db, data, user.id)
    return {"success": True, "message": "Form created successfully", **result}


# literal paths first, "/{form_id}" would swallow them

@router.get("/my-responses")
def my_responses(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "responses": response_service.get_user_responses(db, user.id)}


@router.delete("/responses/{response_id}")
def delete_response(response_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    response_service.delete_response(db, response_id, user.id)
    return {"success": True, "message": "Response deleted successfully"}


@router.get("/{form_id}")
def get_form(form_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "form": form_service.get_form(db, form_id)}


@router.patch("/{form_id}")
def update_form(
    form_id: int, data: FormUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    form_service.update_form(db, form_id, data, user.id)
    return {"success": True, "message": "Form updated successfully"}


@router.delete("/{form_id}")
def delete_form(form_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    form_service.delete_form(db, form_id, user.id)
    return {"success": True, "message": "Form deleted successfully"}


@router.post("/{form_id}/duplicate", status_code=status.HTTP_201_CREATED)
def duplicate_form(form_id: int, user: User = Depends(require_form_author), db: Session = Depends(get_db)):
    result = form_service.duplicate_form(db, form_id, user.id)
    return {"success": True, "message": "Form duplicated successfully", **result}


@router.post("/{form_id}/save-as-template")
def save_as_template(form_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    result = form_service.save_as_template(db, form_id, user.id)
    return {"success": True, "message": "Form saved as template", **result}


@router.post("/{form_id}/deploy")
def deploy_form(
    form_id: int, data: DeployRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    result = form_service.deploy_form(db, form_id, user.id, data)
    return {
        "success": True,
        "message": f"Form deployed to {result['assigned_count']} users",
        **result,
    }


@router.post("/{form_id}/assign")
def assign_form(
    form_id: int, data: DeployRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    result = form_service.assign_form_to_users(db, form_id, user.id, data)
    count = result["assigned_count"]
    message = f"Form assigned to {count} users" if count else "Form deployed successfully"
    return {"success": True, "message": message, **result}


@router.post("/{form_id}/submit", status_code=status.HTTP_201_CREATED)
@form_submit_rate_limit()
def submit_form(
    request: Request,
    form_id: int,
    data: SubmitRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = response_service.submit_form_response(db, form_id, user.id, data.answers)
    return {"success": True, "message": "Response submitted successfully", **result}


@router.get("/{form_id}/submission-status")
def submission_status(
    form_id: int, response: Response, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    result = response_service.get_form_submission_status(db, form_id, user.id)
    if result["form"] is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return {"success": False, "message": "Form not found", **result}
    return {"success": True, **result}


@router.get("/{form_id}/responses")
def form_responses(form_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, **response_service.get_form_responses(db, form_id, user)}
