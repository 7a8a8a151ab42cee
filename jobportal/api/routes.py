# jobportal/api/routes.py
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from jobportal.api.deps import get_bearer_token, get_current_identity
from jobportal.backend.service import AuthService
from jobportal.db.session import get_db
from jobportal.schemas.auth import SignUpIn, SignUpOut
from jobportal.schemas.records import AuthSession, Identity

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.post("/auth/v1/signup", response_model=SignUpOut, status_code=201)
def signup(payload: SignUpIn, db: Session = Depends(get_db)):
    """Create an identity; no session is returned while the email is unconfirmed"""
    user, session = AuthService(db).sign_up(payload.email, payload.password, payload.data)
    return SignUpOut(user=user, session=session)

@router.post("/auth/v1/token", response_model=AuthSession)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """Authenticate user and return JWT"""
    return AuthService(db).sign_in(form_data.username, form_data.password)

@router.post("/auth/v1/token/refresh", response_model=AuthSession)
def refresh(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)):
    return AuthService(db).refresh(token)

@router.get("/auth/v1/user", response_model=Identity)
def current_user(identity: Identity = Depends(get_current_identity)):
    return identity

@router.post("/auth/v1/logout", status_code=204)
def logout(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)):
    AuthService(db).sign_out(token)
