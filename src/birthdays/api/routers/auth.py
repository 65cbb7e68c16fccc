"""Sign-in endpoints — Google OAuth authorization-code flow.

The flow:
  1. GET /login
     - Redirects the browser to Google's consent screen.

  2. GET /auth/google/callback
     - Exchanges the authorization code for an access token.
     - Stores the token under a fresh session id and sets the session cookie.
     - Redirects to ``/``.

  3. GET /logout
     - Forgets the session's token and clears the cookie.

Security notes:
  - The cookie holds only an opaque session id; the bearer token stays
    server-side.
  - A new session id is issued on every successful sign-in.
  - Provider error strings are never echoed back to the browser.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from birthdays.api.deps import (
    clear_session_cookie,
    get_oauth_client,
    get_session_id,
    get_session_store,
    set_session_cookie,
)
from birthdays.api.middleware import internal_error_response
from birthdays.api.render import render_error
from birthdays.core.logging import redact_session_id
from birthdays.oauth import GoogleOAuthClient, TokenExchangeError, sanitize_provider_error
from birthdays.sessions import SessionTokenStore, new_session_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/login")
async def login(oauth: GoogleOAuthClient = Depends(get_oauth_client)) -> Response:
    """Redirect to the Google authorization URL."""
    logger.info("Google sign-in started")
    return RedirectResponse(url=oauth.build_authorization_url(), status_code=302)


@router.get("/auth/google/callback")
async def google_callback(
    code: str | None = Query(default=None, description="Authorization code from Google."),
    error: str | None = Query(default=None, description="OAuth error code from Google."),
    oauth: GoogleOAuthClient = Depends(get_oauth_client),
    store: SessionTokenStore = Depends(get_session_store),
    session_id: str | None = Depends(get_session_id),
) -> Response:
    """Handle Google's redirect back after the consent screen."""
    # --- Provider-side errors (e.g. user denied consent) ---
    if error:
        logger.warning("Google OAuth provider error: %s", error)
        return HTMLResponse(
            render_error("Sign-in failed", sanitize_provider_error(error)),
            status_code=400,
        )

    if not code:
        return HTMLResponse(
            render_error("Sign-in failed", "Authorization code is missing from the callback."),
            status_code=400,
        )

    # --- Exchange code for tokens ---
    try:
        grant = await oauth.exchange_code_for_token(code)
    except TokenExchangeError as exc:
        logger.warning("Google OAuth token exchange failed: %s", exc)
        return internal_error_response(
            "We could not complete sign-in with Google. The code may have expired "
            "or already been used. Please sign in again."
        )

    # Drop whatever this browser was bound to before.
    store.clear(session_id)
    new_id = new_session_id()
    store.set(new_id, grant.access_token)
    logger.info("Google sign-in complete (session=%s)", redact_session_id(new_id))

    response = RedirectResponse(url="/", status_code=302)
    set_session_cookie(response, new_id)
    return response


@router.get("/logout")
async def logout(
    store: SessionTokenStore = Depends(get_session_store),
    session_id: str | None = Depends(get_session_id),
) -> Response:
    """Forget the session's token and clear the cookie."""
    store.clear(session_id)
    logger.info("Signed out")
    response = RedirectResponse(url="/", status_code=302)
    clear_session_cookie(response)
    return response
