from dataclasses import dataclass
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from ..database import get_db
from ..errors import NoToken
from ..schemas.user import (
    AuthResponse,
    MessageResponse,
    RefreshRequest,
    TokenPairResponse,
    User as UserSchema,
    UserCreate,
    UserLogin,
)
from ..services import accounts
from ..tokens import TokenPair, TokenService

router = APIRouter()

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Identity resolved from a verified access token."""
    user_id: str


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def _get_token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX):].strip() or None


def require_auth(
    request: Request,
    tokens: TokenService = Depends(get_token_service),
) -> AuthContext:
    """Gate for per-user routes.

    Raises NoToken when no bearer token is presented and InvalidToken when
    it fails verification; both short-circuit the handler.
    """
    token = _get_token_from_request(request)
    if not token:
        raise NoToken()
    return AuthContext(user_id=tokens.verify_access(token))


def _auth_response(user, pair: TokenPair) -> AuthResponse:
    return AuthResponse(
        user=UserSchema(id=user.id, email=user.email),
        access_token=pair.access_token,
        refresh_token=pair.refresh_token,
    )


@router.post("/register", response_model=AuthResponse)
def register(
    payload: UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """Create a new user account and sign it in."""
    user, pair = accounts.register(
        db,
        tokens,
        payload.email,
        payload.password,
        rounds=request.app.state.settings.bcrypt_rounds,
    )
    return _auth_response(user, pair)


@router.post("/login", response_model=AuthResponse)
def login(
    payload: UserLogin,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    """Sign in and get a fresh token pair."""
    user, pair = accounts.login(db, tokens, payload.email, payload.password)
    return _auth_response(user, pair)


@router.post("/refresh", response_model=TokenPairResponse)
def refresh(
    payload: Optional[RefreshRequest] = None,
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange a refresh token for a new pair."""
    pair = accounts.refresh(tokens, payload.refresh_token if payload else None)
    return TokenPairResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout():
    """Nothing to revoke server-side; the client drops its tokens."""
    return accounts.logout()
