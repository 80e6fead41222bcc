from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from ..database import get_db
from ..deps import get_current_user, require_admin
from .. import crud
from ..schemas import UserOut

router = APIRouter(prefix="/api/users", tags=["users"])

@router.get("/me", response_model=UserOut)
def me(user = Depends(get_current_user)):
    return user

@router.get("", response_model=List[UserOut], dependencies=[Depends(require_admin)])
def all_users(db: Session = Depends(get_db)):
    return crud.list_all_users(db)
