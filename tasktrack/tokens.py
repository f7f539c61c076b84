from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import logging

from jose import ExpiredSignatureError, JWTError, jwt

from .errors import ConfigError, InvalidToken

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies the access/refresh JWT pair.

    Access and refresh tokens are signed with independent secrets, so a
    refresh token can never pass as an access token or the other way round.
    Tokens are stateless: validity is signature plus expiry, nothing else.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta = ACCESS_TOKEN_TTL,
        refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not access_secret or not refresh_secret:
            raise ConfigError("Both signing secrets are required")
        if access_secret == refresh_secret:
            raise ConfigError("Access and refresh signing secrets must differ")
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._clock = clock

    def _sign(self, user_id: str, secret: str, ttl: timedelta) -> str:
        now = self._clock()
        claims = {"userId": user_id, "iat": now, "exp": now + ttl}
        return jwt.encode(claims, secret, algorithm=ALGORITHM)

    def _verify(self, token: Optional[str], secret: str, kind: str) -> str:
        if not token:
            logger.debug("Rejected %s token: empty", kind)
            raise InvalidToken()
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            logger.debug("Rejected %s token: expired", kind)
            raise InvalidToken()
        except JWTError as exc:
            logger.debug("Rejected %s token: %s", kind, exc)
            raise InvalidToken()

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            logger.debug("Rejected %s token: missing userId claim", kind)
            raise InvalidToken()
        return user_id

    def issue(self, user_id: str) -> TokenPair:
        """Mint a fresh access/refresh pair for ``user_id``."""
        return TokenPair(
            access_token=self._sign(user_id, self._access_secret, self.access_ttl),
            refresh_token=self._sign(user_id, self._refresh_secret, self.refresh_ttl),
        )

    def verify_access(self, token: Optional[str]) -> str:
        return self._verify(token, self._access_secret, "access")

    def verify_refresh(self, token: Optional[str]) -> str:
        return self._verify(token, self._refresh_secret, "refresh")
