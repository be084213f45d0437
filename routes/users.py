# routes/users.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException

import schemas
from deps import get_current_user, get_roster, require_admin
from services.user_roster import UserRoster

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
)


@router.get("/", response_model=List[schemas.User])
def get_users(roster: UserRoster = Depends(get_roster), _: schemas.User = Depends(get_current_user)):
    return roster.list_users()


@router.get("/me", response_model=schemas.User)
def get_me(user: schemas.User = Depends(get_current_user)):
    return user


@router.post("/", response_model=List[schemas.User], status_code=201)
def add_user(payload: schemas.UserCreate, roster: UserRoster = Depends(get_roster),
             _: schemas.User = Depends(require_admin)):
    roster.add_user(payload.username, payload.password, payload.role)
    return roster.list_users()


@router.delete("/{user_id}", response_model=List[schemas.User])
def remove_user(user_id: str, roster: UserRoster = Depends(get_roster),
                admin: schemas.User = Depends(require_admin)):
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot remove your own account.")
    if not roster.remove_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return roster.list_users()
