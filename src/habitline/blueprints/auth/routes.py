"""Google sign-in and token refresh routes."""

from __future__ import annotations

import secrets

from flask import jsonify, redirect, request, session

from . import bp
from ...errors import AuthenticationError
from ...extensions import get_state, request_deadline
from ...logging_config import get_logger
from ...services.auth import get_user, login_or_register_google_user
from ...services.tokens import create_access_token, create_refresh_token, decode_refresh_token

logger = get_logger("blueprints.auth")

REFRESH_COOKIE = "refresh_token"
COOKIE_PATH = "/api/auth"
STATE_SESSION_KEY = "oauth_state"


def _set_refresh_cookie(response, token: str) -> None:
    settings = get_state().config.JWT
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=int(settings.refresh_ttl.total_seconds()),
        httponly=True,
        secure=request.is_secure,
        samesite="Lax",
        path=COOKIE_PATH,
    )


def _user_id_from_refresh_cookie() -> str:
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise AuthenticationError("refresh token not found")
    return decode_refresh_token(token, get_state().config.JWT)


@bp.get("/google/login")
def google_login():
    """Send the browser to Google's consent screen."""

    state = secrets.token_urlsafe(24)
    session[STATE_SESSION_KEY] = state
    return redirect(get_state().oauth_client.authorization_url(state), code=307)


@bp.get("/google/callback")
def google_callback():
    """Finish sign-in, set the refresh cookie and return to the frontend."""

    app_state = get_state()
    expected = session.pop(STATE_SESSION_KEY, None)
    if not expected or request.args.get("state") != expected:
        logger.warning("OAuth state mismatch")
        raise AuthenticationError("invalid OAuth state")

    client = app_state.oauth_client
    google_token = client.exchange_code(request.args.get("code", ""))
    info = client.fetch_user_info(google_token)
    user = login_or_register_google_user(
        app_state.session_factory, info, deadline=request_deadline()
    )

    response = redirect(app_state.config.GOOGLE_OAUTH.frontend_url, code=307)
    _set_refresh_cookie(response, create_refresh_token(user.id, app_state.config.JWT))
    logger.info("Authentication successful", extra={"user_id": user.id})
    return response


@bp.post("/refresh_token")
def refresh_token():
    """Mint a new access token from the refresh cookie."""

    user_id = _user_id_from_refresh_cookie()
    return jsonify({"access_token": create_access_token(user_id, get_state().config.JWT)})


@bp.post("/logout")
def logout():
    response = jsonify({"message": "logged out successfully"})
    response.delete_cookie(REFRESH_COOKIE, path=COOKIE_PATH, httponly=True, samesite="Lax")
    return response


@bp.get("/me")
def me():
    """Return the signed-in user with a fresh access token and rotated refresh cookie."""

    app_state = get_state()
    user_id = _user_id_from_refresh_cookie()
    user = get_user(app_state.session_factory, user_id)
    response = jsonify(
        {
            "user": user.to_dict(),
            "access_token": create_access_token(user_id, app_state.config.JWT),
        }
    )
    _set_refresh_cookie(response, create_refresh_token(user_id, app_state.config.JWT))
    return response
