from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

bearer = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "token"

def get_token(request: Request,
              creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str | None:
    # токен не проверяем и не обновляем: его просто пробрасываем в backend
    if creds and creds.credentials:
        return creds.credentials
    return request.cookies.get(TOKEN_COOKIE) or None

def require_token(token: str | None = Depends(get_token)) -> str:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return token
