import secrets

from fastapi import HTTPException, Request, status


def _bearer_token(header: str) -> str | None:
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()


async def require_admin(request: Request) -> None:
    token = request.app.state.ctx.auth_token
    presented = _bearer_token(request.headers.get("Authorization", ""))
    if presented is None or not secrets.compare_digest(presented.encode(), token.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
