"""FastAPI dependencies for caller identity.

The ledger never trusts an identity from a request body: the caller is
whoever the bearer token names.  Tokens are minted outside the API
(``trackchain.cli issue-token``), so the scheme is a plain bearer header
with no token endpoint.  Whether that identity may perform an operation is
decided by the services, not here.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trackchain.auth.jwt import decode_token

bearer_scheme = HTTPBearer(
    auto_error=False,
    description="JWT issued by `trackchain.cli issue-token`",
)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_caller(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the stakeholder identity carried by the bearer token."""
    if credentials is None:
        raise _unauthorized()
    payload = decode_token(credentials.credentials)
    identity: str | None = payload.get("sub")
    if not identity or payload.get("type") != "access":
        raise _unauthorized()
    return identity
