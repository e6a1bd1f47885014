import logging
from fastapi import APIRouter, HTTPException, Depends, status
from sqlalchemy.orm import Session
from sqlalchemy import or_

from app.database import get_db
from app.models.user import User
from app.schemas.user import UserRegister, UserLogin, UserOut
from app.schemas.tokens import Token
from app.utils.auth import get_current_user
from app.utils.responses import success
from app.utils.security import hash_password, verify_password, create_access_token

router = APIRouter()
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials. Please check your email and password."

def issue_token(user: User) -> Token:
    access_token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "username": user.username}
    )
    return Token(user=UserOut.model_validate(user), access_token=access_token)

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(
        or_(User.email == payload.email, User.username == payload.username)
    ).first()
    if existing_user:
        if existing_user.email == payload.email:
            raise HTTPException(status_code=409, detail="An account with this email already exists.")
        raise HTTPException(status_code=409, detail="This username is already taken.")

    new_user = User(
        email=payload.email,
        username=payload.username,
        hashed_password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
    )

    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    logger.info(f"User {new_user.id} registered as {new_user.username}")
    return success(issue_token(new_user), "User registered successfully.", status.HTTP_201_CREATED)

@router.post("/login")
def login(payload: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == payload.email).first()
    if not db_user or not verify_password(payload.password, db_user.hashed_password):
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS)

    return success(issue_token(db_user), "Login successful.")

@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return success(UserOut.model_validate(current_user), "Profile retrieved successfully.")
