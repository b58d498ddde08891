from __future__ import annotations

import logging
from datetime import timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from google_auth_oauthlib.flow import Flow

from backend.app.dependencies import SESSION_USER_KEY, get_identity, get_settings
from inbox_intel.config.settings import Settings
from inbox_intel.gmail.client import SCOPES as GMAIL_SCOPES

logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_SCOPES = [
    "openid",
    "https://www.googleapis.com/auth/userinfo.email",
    *GMAIL_SCOPES,
]


def _build_flow(
    request: Request,
    settings: Settings,
    *,
    state: Optional[str] = None,
    code_verifier: Optional[str] = None,
) -> Flow:
    secrets_path = settings.client_secrets_path
    if not secrets_path.exists():
        raise HTTPException(
            status_code=500,
            detail=f"Missing OAuth client secrets at {secrets_path}.",
        )

    flow = Flow.from_client_secrets_file(
        str(secrets_path),
        scopes=OAUTH_SCOPES,
        state=state,
        code_verifier=code_verifier,
    )
    # Callback URL is built from the incoming request so any host works.
    flow.redirect_uri = str(request.url_for("oauth_callback"))
    return flow


def _verified_email(raw_id_token: Optional[str], audience: str) -> str:
    if not raw_id_token:
        raise HTTPException(status_code=401, detail="Google did not return an ID token.")
    try:
        idinfo = id_token.verify_oauth2_token(raw_id_token, google_requests.Request(), audience)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=f"Invalid ID token: {exc}") from exc

    email = idinfo.get("email")
    if not email or not idinfo.get("email_verified", False):
        raise HTTPException(status_code=401, detail="Google account has no verified email.")
    return email


@router.get("/auth/login")
def login(request: Request, settings: Settings = Depends(get_settings)) -> RedirectResponse:
    flow = _build_flow(request, settings)
    auth_url, state = flow.authorization_url(
        access_type="online",
        include_granted_scopes="true",
        prompt="select_account",
    )
    # Callback resumes from the session, so no server-side flow cache is needed.
    request.session["oauth_state"] = state
    if flow.code_verifier:
        request.session["oauth_code_verifier"] = flow.code_verifier
    return RedirectResponse(auth_url)


@router.get("/auth/callback", name="oauth_callback")
def oauth_callback(
    request: Request,
    state: Optional[str] = None,
    code: Optional[str] = None,
    error: Optional[str] = None,
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    expected_state = request.session.pop("oauth_state", None)
    code_verifier = request.session.pop("oauth_code_verifier", None)
    if error:
        # e.g. access_denied when the user cancels the consent screen.
        logger.info("OAuth sign-in was not completed: %s", error)
        return RedirectResponse("/")
    if not code:
        raise HTTPException(status_code=400, detail="OAuth callback is missing the authorization code.")
    if not expected_state or expected_state != state:
        raise HTTPException(status_code=400, detail="OAuth state mismatch.")

    flow = _build_flow(request, settings, state=state, code_verifier=code_verifier)
    try:
        flow.fetch_token(code=code)
    except Exception as exc:
        logger.warning("OAuth token exchange failed: %s", exc)
        raise HTTPException(status_code=400, detail="OAuth token exchange failed.") from exc

    creds = flow.credentials
    audience = settings.google_client_id or flow.client_config["client_id"]
    email = _verified_email(getattr(creds, "id_token", None), audience)

    expires_at = None
    if creds.expiry is not None:
        # google-auth keeps expiry as naive UTC.
        expires_at = creds.expiry.replace(tzinfo=timezone.utc).timestamp()

    request.session[SESSION_USER_KEY] = {
        "email": email,
        "access_token": creds.token,
        "expires_at": expires_at,
    }
    logger.info("Signed in %s", email)
    return RedirectResponse("/")


@router.post("/auth/logout")
def logout(request: Request) -> dict[str, Any]:
    request.session.clear()
    return {"ok": True}


@router.get("/auth/session")
def session_status(request: Request) -> dict[str, Any]:
    try:
        identity = get_identity(request)
    except HTTPException:
        return {"authenticated": False, "email": None}
    return {"authenticated": True, "email": identity.email}
