from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..bootstrap import AuthCore
from ..deps import core_dep, get_current_user
from ..errors import AuthError, NotFoundError, Result

log = logging.getLogger(__name__)

router = APIRouter()


class LoginForm(BaseModel):
    username: str = ""
    password: str = ""


class PasswordForm(BaseModel):
    old_password: str = ""
    new_password: str = ""


@router.post("/login")
def login(form: LoginForm, core: AuthCore = Depends(core_dep)):
    result = core.directory.validate_user(form.username, form.password)
    if result.error:
        # Bad credentials and an unreachable directory look the same to the client.
        return JSONResponse(Result.fail("authentication failed").to_dict(), status_code=status.HTTP_401_UNAUTHORIZED)

    token = core.sessions.create_session(form.username.strip())
    resp = JSONResponse(Result.ok().to_dict())
    resp.set_cookie(
        core.cookie_name,
        token,
        max_age=int(core.sessions.lifetime.total_seconds()),
        httponly=True,
        secure=core.cookie_secure,
        samesite="lax",
    )
    return resp


@router.post("/logout")
def logout(core: AuthCore = Depends(core_dep)):
    resp = JSONResponse(Result.ok().to_dict())
    resp.delete_cookie(core.cookie_name)
    return resp


@router.get("/me")
def me(username: str = Depends(get_current_user), core: AuthCore = Depends(core_dep)):
    try:
        info = core.directory.get_member_info(username)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    except AuthError as e:
        log.warning("Member info lookup for %s failed: %s", username, e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Directory unavailable")
    return {"username": username, **info.to_dict()}


@router.post("/password")
def change_password(
    form: PasswordForm,
    username: str = Depends(get_current_user),
    core: AuthCore = Depends(core_dep),
):
    result = core.directory.change_password(username, form.old_password, form.new_password)
    code = status.HTTP_400_BAD_REQUEST if result.error else status.HTTP_200_OK
    return JSONResponse(result.to_dict(), status_code=code)


@router.get("/health")
def health(core: AuthCore = Depends(core_dep)):
    return {"directory": core.directory.status}
