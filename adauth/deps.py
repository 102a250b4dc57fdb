from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from .bootstrap import AuthCore, get_core


def core_dep() -> AuthCore:
    return get_core()


def get_current_user(request: Request, core: AuthCore = Depends(core_dep)) -> str:
    token = request.cookies.get(core.cookie_name, "")
    username = core.sessions.verify_session(token) if token else None
    if not username:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return username
