"""Account registration, login and token refresh."""
from typing import Optional, Tuple
import logging

import bcrypt
import pydantic
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import EmailTaken, InvalidCredentials, InvalidToken, ValidationError
from ..models import User
from ..schemas.user import UserCreate
from ..tokens import TokenPair, TokenService

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    password_bytes = plain_password.encode('utf-8')[:72]
    hashed_bytes = hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


def get_password_hash(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password using bcrypt directly."""
    password_bytes = password.encode('utf-8')[:72]  # Truncate to 72 bytes (bcrypt limit)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def _validate_registration(email: str, password: str) -> None:
    try:
        UserCreate(email=email, password=password)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"{field}: {first['msg']}") from exc


def register(
    db: Session,
    tokens: TokenService,
    email: str,
    password: str,
    rounds: int = BCRYPT_ROUNDS,
) -> Tuple[User, TokenPair]:
    """Create an identity and issue its first token pair.

    Input is validated before the store is touched. Uniqueness is enforced by
    the database constraint on ``users.email``.
    """
    _validate_registration(email, password)

    user = User(email=email, hashed_password=get_password_hash(password, rounds))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise EmailTaken() from exc
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user, tokens.issue(user.id)


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """Authenticate a user."""
    user = db.exec(select(User).where(User.email == email)).first()
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def login(db: Session, tokens: TokenService, email: str, password: str) -> Tuple[User, TokenPair]:
    user = authenticate_user(db, email, password)
    if user is None:
        # Same error whether the email or the password was wrong.
        raise InvalidCredentials()
    return user, tokens.issue(user.id)


def refresh(tokens: TokenService, refresh_token: Optional[str]) -> TokenPair:
    """Exchange a refresh token for a brand-new pair.

    The presented refresh token is not invalidated; it stays usable until its
    own expiry.
    """
    if not refresh_token:
        raise InvalidToken("Invalid refresh token")
    try:
        user_id = tokens.verify_refresh(refresh_token)
    except InvalidToken:
        raise InvalidToken("Invalid refresh token")
    return tokens.issue(user_id)


def logout() -> dict:
    """Tokens are stateless; logging out is the client discarding them."""
    return {"message": "Logged out"}
