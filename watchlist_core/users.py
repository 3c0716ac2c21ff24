from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from models import db, User
from .dto import user_to_dict
from .errors import ConflictError, NotFoundError, ValidationError


class UserService:
    def list_all(self) -> List[Dict[str, Any]]:
        return [user_to_dict(u) for u in User.query.order_by(User.id.asc()).all()]

    def get_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        u = db.session.get(User, user_id)
        return user_to_dict(u) if u else None

    def get_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        u = User.query.filter_by(username=username).first()
        return user_to_dict(u) if u else None

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        u = User.query.filter_by(email=email).first()
        return user_to_dict(u) if u else None

    def create(self, username: Optional[str], email: Optional[str], password: Optional[str],
               role: str = "USER") -> Dict[str, Any]:
        if not username or not email or not password:
            raise ValidationError("username, email and password are required")
        if User.query.filter_by(username=username).first():
            raise ConflictError("Username already exists")
        if User.query.filter_by(email=email).first():
            raise ConflictError("Email already exists")

        u = User(username=username, email=email,
                 password=generate_password_hash(password), role=role or "USER")
        try:
            db.session.add(u); db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Username or email already exists")
        return user_to_dict(u)

    def authenticate(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        u = User.query.filter_by(username=username).first()
        if u is None or not check_password_hash(u.password, password):
            return None
        return user_to_dict(u)

    def update(self, user_id: int, username: Optional[str] = None, email: Optional[str] = None,
               password: Optional[str] = None) -> Dict[str, Any]:
        u = db.session.get(User, user_id)
        if u is None:
            raise NotFoundError(f"User {user_id} not found")

        new_username = username if username and username != u.username else None
        new_email = email if email and email != u.email else None
        # all checks run before the row is touched
        if new_username and User.query.filter_by(username=new_username).first():
            raise ConflictError("Username already exists")
        if new_email and User.query.filter_by(email=new_email).first():
            raise ConflictError("Email already exists")

        if new_username:
            u.username = new_username
        if new_email:
            u.email = new_email
        if password and password.strip():
            u.password = generate_password_hash(password)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError("Username or email already exists")
        return user_to_dict(u)

    def delete(self, user_id: int) -> bool:
        u = db.session.get(User, user_id)
        if u is None:
            return False
        db.session.delete(u)  # cascades to watchlists and their items
        db.session.commit()
        return True
