from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from feedbacts.api.deps import get_current_user, require_admin
from feedbacts.db.database import get_db
from feedbacts.models.user import User
from feedbacts.schemas.form_schema import CategoryCreate
from feedbacts.services.form_service import add_category, delete_category, list_categories

router = APIRouter()


@router.get("")
def get_categories(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "categories": list_categories(db)}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(data: CategoryCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    category = add_category(db, data.name, data.description)
    return {"success": True, "message": "Category added successfully", "category": category}


@router.delete("/{category_id}")
def remove_category(category_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    delete_category(db, category_id)
    return {"success": True, "message": "Category deleted successfully"}
