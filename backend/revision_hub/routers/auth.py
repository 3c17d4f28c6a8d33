from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
import logging
import uuid

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm, OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..settings import settings
from ..db import get_db
from ..errors import AuthenticationError, ConflictError, ValidationError
from ..models import AuthUser, AuthSession

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)
logging.getLogger('passlib').setLevel(logging.ERROR)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


class Token(BaseModel):
	access_token: str
	token_type: str = "bearer"


class User(BaseModel):
	id: str
	email: str
	name: str


class AuthResponse(Token):
	user: User


class RegisterRequest(BaseModel):
	email: str
	password: str
	name: str = ""


class LoginRequest(BaseModel):
	email: str
	password: str


def _bcrypt_safe(password: str) -> str:
	# Truncate password to 72 bytes for bcrypt compatibility
	password_bytes = password.encode('utf-8')
	if len(password_bytes) > 72:
		password_bytes = password_bytes[:72]
	return password_bytes.decode('utf-8', errors='ignore')


def hash_password(password: str) -> str:
	return pwd_context.hash(_bcrypt_safe(password))


def verify_password(plain_password: str, hashed_password: str) -> bool:
	if not hashed_password:
		return False
	return pwd_context.verify(_bcrypt_safe(plain_password), hashed_password)


def _normalize_email(email: str) -> str:
	return (email or "").strip().lower()


def _to_user(row: AuthUser) -> User:
	return User(id=row.id, email=row.email, name=row.name or "")


def _ensure_seed_user(db: Session) -> None:
	email = _normalize_email(settings.seed_email or "")
	password = settings.seed_password_plain
	if not email or not password:
		return
	if db.query(AuthUser).filter(AuthUser.email == email).first() is None:
		db.add(AuthUser(id=uuid.uuid4().hex, email=email, name=email.split("@")[0], password_hash=hash_password(password)))
		db.commit()
		logger.info("Seeded dev account %s", email)


def _ensure_guest_user(db: Session) -> AuthUser:
	row = db.get(AuthUser, settings.guest_user_id)
	if row is None:
		row = AuthUser(
			id=settings.guest_user_id,
			email=f"{settings.guest_user_id}@guest.revisionhub.local",
			name="Guest Learner",
			password_hash="",
		)
		db.add(row)
		db.commit()
	return row


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	"""Return a safe JWT expiry timestamp.

	Uses the configured token lifetime when no explicit delta is given and
	falls back to a generous but finite default.
	"""
	delta = expires_delta
	if delta is None:
		minutes = getattr(settings, "access_token_expire_minutes", None)
		if isinstance(minutes, int) and minutes > 0:
			delta = timedelta(minutes=minutes)
		else:
			delta = timedelta(days=30)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		# Cap at far future but within datetime bounds
		return datetime.max.replace(tzinfo=timezone.utc)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
	to_encode = data.copy()
	expire = _resolve_expiry(expires_delta)
	to_encode.update({"exp": expire})
	encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
	return encoded_jwt


def _issue_token(db: Session, user_id: str) -> str:
	# A new session id (jti) per login, persisted so it can be revoked
	session_id = uuid.uuid4().hex
	try:
		db.add(AuthSession(session_id=session_id, user_id=user_id))
		db.commit()
	except Exception:
		db.rollback()
		raise
	return create_access_token({"sub": user_id, "jti": session_id})


def authenticate(db: Session, email: str, password: str) -> Tuple[str, str]:
	"""Check e-mail and password; return ``(user_id, bearer_token)``."""
	_ensure_seed_user(db)
	row = db.query(AuthUser).filter(AuthUser.email == _normalize_email(email)).first()
	if row is None or not verify_password(password or "", row.password_hash):
		raise AuthenticationError("Incorrect email or password")
	return row.id, _issue_token(db, row.id)


def authenticate_guest(db: Session) -> Tuple[str, str]:
	if not settings.allow_guest:
		raise AuthenticationError("Guest access is disabled")
	row = _ensure_guest_user(db)
	return row.id, _issue_token(db, row.id)


def _decode(token: str) -> Tuple[str, str]:
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		raise AuthenticationError()
	user_id: str | None = payload.get("sub")
	jti: str | None = payload.get("jti")
	if user_id is None or jti is None:
		raise AuthenticationError()
	return user_id, jti


def authorize(db: Session, token: Optional[str]) -> str:
	"""Resolve a bearer token to a user id, or raise ``AuthenticationError``."""
	if not token:
		raise AuthenticationError("Not authenticated")
	user_id, jti = _decode(token)
	# The session row must still exist; deleting it revokes the token
	row = db.get(AuthSession, jti)
	if not row or row.user_id != user_id:
		raise AuthenticationError("Session expired or revoked")
	row.last_activity_at = datetime.now(timezone.utc)
	db.add(row)
	db.commit()
	return user_id


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
	user_id = authorize(db, token)
	row = db.get(AuthUser, user_id)
	if row is None:
		raise AuthenticationError()
	return _to_user(row)


def _auth_response(db: Session, user_id: str, token: str) -> AuthResponse:
	return AuthResponse(access_token=token, user=_to_user(db.get(AuthUser, user_id)))


@router.post("/token", response_model=Token)
async def token(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
	# OAuth2 form field "username" carries the e-mail address
	_, access_token = authenticate(db, form_data.username, form_data.password)
	return Token(access_token=access_token)


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, db: Session = Depends(get_db)):
	user_id, access_token = authenticate(db, req.email, req.password)
	return _auth_response(db, user_id, access_token)


@router.post("/guest", response_model=AuthResponse)
async def guest_login(db: Session = Depends(get_db)):
	user_id, access_token = authenticate_guest(db)
	return _auth_response(db, user_id, access_token)


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(req: RegisterRequest, db: Session = Depends(get_db)):
	email = _normalize_email(req.email)
	password = req.password or ""
	name = (req.name or "").strip()
	if not email or "@" not in email:
		raise ValidationError("a valid email is required", field="email")
	if len(password) < 6:
		raise ValidationError("password must be at least 6 characters", field="password")
	if db.query(AuthUser).filter(AuthUser.email == email).first():
		raise ConflictError("Email already registered")
	row = AuthUser(id=uuid.uuid4().hex, email=email, name=name or email.split("@")[0], password_hash=hash_password(password))
	db.add(row)
	db.commit()
	logger.info("Registered user %s", row.id)
	return _auth_response(db, row.id, _issue_token(db, row.id))


@router.get("/me", response_model=User)
async def me(user: User = Depends(get_current_user)):
	return user


@router.post("/logout", status_code=204)
async def logout(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)):
	_, jti = _decode(token)
	row = db.get(AuthSession, jti)
	if row is not None:
		db.delete(row)
		db.commit()
