"""Sign-up, sign-in and session handling.

Passwords are stored as bcrypt hashes. A successful sign-in yields an
``AuthContext``; every data-access call takes one, so nothing below this
module reads "the current user" from global state.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from config import APP_BASE_URL, DEFAULT_MONTHLY_BUDGET, RESET_TOKEN_TTL_MINUTES, SESSION_TTL_HOURS
from database import AuthSession, PasswordResetToken, Profile, User, commit_or_rollback, utcnow
from errors import AuthError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Email hoặc mật khẩu không đúng. Vui lòng thử lại."


@dataclass(frozen=True)
class AuthContext:
    """The signed-in user every per-user query is filtered on."""

    user_id: int
    email: str = ""


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _validate_new_password(password: str, field: str = "password"):
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(field, f"Mật khẩu phải có ít nhất {MIN_PASSWORD_LENGTH} ký tự.")


def sign_up(db: Session, email: str, password: str, display_name: str = "") -> AuthContext:
    """Create the user and its profile in one commit."""
    email = _normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("email", "Email không hợp lệ.")
    _validate_new_password(password)
    if db.query(User).filter(User.email == email).first():
        raise ValidationError("email", "Email này đã được đăng ký.")

    user = User(email=email, password_hash=hash_password(password))
    user.profile = Profile(display_name=display_name.strip(), monthly_budget=DEFAULT_MONTHLY_BUDGET)
    db.add(user)
    commit_or_rollback(db, "sign-up")
    logger.info("New account %s", user.id)
    return AuthContext(user_id=user.id, email=user.email)


def sign_in(db: Session, email: str, password: str) -> AuthContext:
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user and check_password(password or "", user.password_hash):
        return AuthContext(user_id=user.id, email=user.email)
    logger.warning("Failed sign-in attempt for %s", _normalize_email(email))
    raise AuthError(INVALID_CREDENTIALS)


def create_session(db: Session, ctx: AuthContext, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    token = secrets.token_urlsafe(32)
    db.add(AuthSession(token=token, user_id=ctx.user_id, created_at=now,
                       expires_at=now + timedelta(hours=SESSION_TTL_HOURS)))
    commit_or_rollback(db, "session create")
    return token


def resolve_session(db: Session, token: Optional[str], now: Optional[datetime] = None) -> AuthContext:
    """Map a bearer token to its user, or raise AuthError."""
    if not token:
        raise AuthError("Missing session")
    now = now or utcnow()
    row = db.query(AuthSession).filter(AuthSession.token == token).first()
    if row is None or row.expires_at <= now:
        raise AuthError("Invalid or expired session")
    user = db.get(User, row.user_id)
    if user is None:
        raise AuthError("Invalid or expired session")
    return AuthContext(user_id=user.id, email=user.email)


def revoke_session(db: Session, token: str):
    db.query(AuthSession).filter(AuthSession.token == token).delete()
    commit_or_rollback(db, "session revoke")


def change_password(db: Session, ctx: AuthContext, current: str, new: str, confirm: str):
    _validate_new_password(new, "new_password")
    if new != confirm:
        raise ValidationError("confirm_password", "Mật khẩu xác nhận không khớp.")
    user = db.get(User, ctx.user_id)
    if user is None or not check_password(current or "", user.password_hash):
        raise ValidationError("current_password", "Mật khẩu hiện tại không đúng.")
    user.password_hash = hash_password(new)
    commit_or_rollback(db, "password change")


def request_password_reset(db: Session, email: str, now: Optional[datetime] = None) -> Optional[str]:
    """Issue a reset token and log the link.

    Unknown addresses return None without telling the caller, so the form
    shows the same "email sent" screen either way.
    """
    user = db.query(User).filter(User.email == _normalize_email(email)).first()
    if user is None:
        return None
    now = now or utcnow()
    token = secrets.token_urlsafe(32)
    db.add(PasswordResetToken(token=token, user_id=user.id,
                              expires_at=now + timedelta(minutes=RESET_TOKEN_TTL_MINUTES)))
    commit_or_rollback(db, "reset token")
    # Mail delivery lives outside this app
    logger.info("Password reset link for user %s: %s/?reset_token=%s", user.id, APP_BASE_URL, token)
    return token


def reset_password(db: Session, token: str, new_password: str, confirm: str,
                   now: Optional[datetime] = None) -> AuthContext:
    _validate_new_password(new_password)
    if new_password != confirm:
        raise ValidationError("confirm_password", "Mật khẩu xác nhận không khớp.")
    now = now or utcnow()
    row = db.query(PasswordResetToken).filter(PasswordResetToken.token == token).first()
    if row is None or row.used or row.expires_at <= now:
        raise AuthError("Liên kết đặt lại mật khẩu không hợp lệ hoặc đã hết hạn.")
    user = db.get(User, row.user_id)
    user.password_hash = hash_password(new_password)
    row.used = True
    commit_or_rollback(db, "password reset")
    return AuthContext(user_id=user.id, email=user.email)
