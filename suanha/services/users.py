from __future__ import annotations

import logging
from typing import Optional

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from suanha.models.user import User, ROLE_EMPLOYEE, ROLE_CHOICES
from suanha.services.errors import ValidationError, NotFoundError, ConflictError
from suanha.utils.helpers import as_bool
from suanha.utils.pagination import Page, paginate
from suanha.utils.validators import clean_str, require_str, is_valid_email, normalize_email, normalize_phone

log = logging.getLogger(__name__)

_PROFILE_FIELDS = {
    "full_name": 255,
    "position": 100,
    "department": 100,
    "address": 255,
    "notes": 2000,
}


def _check_password(password, field: str = "password") -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError(field, "Password is required")
    min_len = int(current_app.config.get("MIN_PASSWORD_LENGTH", 6))
    if len(password) < min_len:
        raise ValidationError(field, f"Password must be at least {min_len} characters")
    return password


def _check_role(role) -> str:
    role = (role or "").strip().upper() if isinstance(role, str) else role
    if role not in ROLE_CHOICES:
        raise ValidationError("role", f"Role must be one of {', '.join(ROLE_CHOICES)}")
    return role


def _email_taken(session: Session, email: str, exclude_id: Optional[int] = None) -> bool:
    q = session.query(User).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.count() > 0


def _name_taken(session: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    q = session.query(User).filter(func.lower(User.name) == name.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.count() > 0


def _flush(session: Session) -> None:
    try:
        session.flush()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError("Email or username already exists.") from e


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def find_by_email(session: Session, email: str) -> Optional[User]:
    if not email:
        return None
    return session.query(User).filter(func.lower(User.email) == email.strip().lower()).one_or_none()


def authenticate(session: Session, email: str, password: str) -> Optional[User]:
    """Return the user for valid credentials, None otherwise (unknown, inactive, wrong password)."""
    user = find_by_email(session, email)
    if not user or not user.is_active or not user.check_password(password or ""):
        return None
    return user


def list_users(session: Session, *, search: Optional[str] = None, page: int = 1, limit: int = 10) -> Page:
    query = session.query(User)
    if search:
        like = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(User.email).like(like),
            func.lower(User.name).like(like),
            func.lower(User.full_name).like(like),
        ))
    query = query.order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page, limit)


def create_user(session: Session, data: dict) -> User:
    email = normalize_email(data.get("email"))
    if not email:
        raise ValidationError("email", "Email is required")
    if not is_valid_email(email):
        raise ValidationError("email", "Invalid email address")
    name = require_str(data, "name", max_len=100, label="Username")
    full_name = require_str(data, "full_name", label="Full name")
    password = _check_password(data.get("password"))
    role = _check_role(data.get("role") or ROLE_EMPLOYEE)

    if _email_taken(session, email):
        raise ConflictError("Email already exists")
    if _name_taken(session, name):
        raise ConflictError("Username already exists")

    user = User(email=email, name=name, role=role, is_active=as_bool(data.get("is_active"), True))
    user.set_password(password)
    _apply_profile(user, data)
    user.full_name = full_name
    session.add(user)
    _flush(session)
    log.info("user created id=%s email=%s role=%s", user.id, user.email, user.role)
    return user


def _apply_profile(user: User, data: dict) -> None:
    for key, max_len in _PROFILE_FIELDS.items():
        if key in data:
            setattr(user, key, clean_str(data.get(key), max_len=max_len))
    if "phone" in data:
        raw = data.get("phone")
        phone = normalize_phone(raw)
        if raw and not phone:
            raise ValidationError("phone", "Invalid phone number")
        user.phone = phone


def update_user(session: Session, user_id: int, data: dict, *, acting_user: User) -> User:
    user = get_user(session, user_id)

    if "email" in data:
        email = normalize_email(data.get("email"))
        if not email or not is_valid_email(email):
            raise ValidationError("email", "Invalid email address")
        if _email_taken(session, email, exclude_id=user.id):
            raise ConflictError("Email already exists")
        user.email = email
    if "name" in data:
        name = require_str(data, "name", max_len=100, label="Username")
        if _name_taken(session, name, exclude_id=user.id):
            raise ConflictError("Username already exists")
        user.name = name
    if "full_name" in data:
        user.full_name = require_str(data, "full_name", label="Full name")
    if "role" in data:
        role = _check_role(data.get("role"))
        if user.id == acting_user.id and role != user.role:
            raise ValidationError("role", "Cannot change your own role")
        user.role = role
    if "is_active" in data:
        active = as_bool(data.get("is_active"), True)
        if user.id == acting_user.id and not active:
            raise ValidationError("is_active", "Cannot deactivate your own account")
        user.is_active = active
    if data.get("password"):
        user.set_password(_check_password(data.get("password")))

    _apply_profile(user, {k: v for k, v in data.items() if k != "full_name"})
    _flush(session)
    log.info("user updated id=%s by=%s", user.id, acting_user.id)
    return user


def delete_user(session: Session, user_id: int, *, acting_user: User) -> None:
    user = get_user(session, user_id)
    if user.id == acting_user.id:
        raise ValidationError("id", "Cannot delete your own account")
    session.delete(user)
    _flush(session)
    log.info("user deleted id=%s by=%s", user_id, acting_user.id)


def toggle_status(session: Session, user_id: int, *, acting_user: User) -> User:
    user = get_user(session, user_id)
    if user.id == acting_user.id:
        raise ValidationError("id", "Cannot deactivate your own account")
    user.is_active = not user.is_active
    _flush(session)
    log.info("user %s id=%s by=%s", "activated" if user.is_active else "deactivated", user.id, acting_user.id)
    return user


def change_password(
    session: Session,
    user_id: int,
    *,
    acting_user: User,
    current_password: Optional[str],
    new_password: Optional[str],
) -> User:
    """
    Own account: current password must match. Admins may reset anyone else's
    password without it. Permission (self or admin) is checked by the caller.
    """
    user = get_user(session, user_id)
    if user.id == acting_user.id and not user.check_password(current_password or ""):
        raise ValidationError("current_password", "Current password is incorrect")
    user.set_password(_check_password(new_password, field="new_password"))
    _flush(session)
    log.info("password changed user=%s by=%s", user.id, acting_user.id)
    return user
