# ptbooking/routers/auth.py

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..config import config
from ..dependencies import is_admin
from ..schemas.auth import AdminLogin
from ..services.admin_auth import COOKIE_NAME, issue_token, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/verify-admin")
def verify_admin(data: AdminLogin):
    if not verify_password(data.password, config.admin_password):
        logger.warning("Admin login failed")
        return JSONResponse(status_code=401, content={"isValid": False})

    response = JSONResponse(content={"isValid": True})
    response.set_cookie(
        COOKIE_NAME,
        issue_token(config.session_secret),
        max_age=config.session_ttl_seconds,
        path="/",
        httponly=True,
        samesite="strict",
    )
    logger.info("Admin logged in")
    return response


@router.get("/check-auth")
def check_auth(authenticated: bool = Depends(is_admin)):
    if not authenticated:
        return JSONResponse(status_code=401, content={"isAuthenticated": False})
    return {"isAuthenticated": True}
