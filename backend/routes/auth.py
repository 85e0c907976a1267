# backend/routes/auth.py
import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import client_ip, write_log
from utils.errors import Conflict, Unauthenticated
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_user_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


# Register a new user
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    existing = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if existing:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Email exists"})
        raise Conflict("User already exists")

    new_user = User(
        name=payload.name.strip(),
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        phone=payload.phone or "",
        is_admin=False,
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration won the unique email index
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})
    logger.info("Registered user %s", new_user.id)

    return {
        "message": "User registered successfully",
        "token": create_user_token(new_user),
        "user": new_user,
    }


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()

    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": normalized_email})
        raise Unauthenticated("Invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"message": "Login successful", "token": create_user_token(db_user), "user": db_user}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.MeResponse)
def me(current_user: User = Depends(get_current_user)):
    return {"user": current_user}
