"""Bearer token verification: our own JWTs first, then Google ID tokens."""
from functools import wraps

import structlog
from flask import current_app, g, request
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token
from jwt.exceptions import PyJWTError

from tripplanner.errors import Unauthorized

log = structlog.get_logger(__name__)


def issue_token(user):
    """Access token carrying the user's id as identity and email/name as claims."""
    return create_access_token(
        identity=user["id"],
        additional_claims={"email": user.get("email"), "name": user.get("name")},
    )


def _from_jwt(token):
    claims = decode_token(token)
    return {
        "id": claims["sub"],
        "email": claims.get("email"),
        "name": claims.get("name"),
        "picture": claims.get("picture"),
    }


def _from_google(token):
    client_id = current_app.config.get("GOOGLE_CLIENT_ID")
    if not client_id:
        raise ValueError("Google sign-in is not configured")

    payload = id_token.verify_oauth2_token(token, google_requests.Request(), client_id)
    return {
        "id": payload["sub"],
        "email": payload.get("email"),
        "name": payload.get("name"),
        "picture": payload.get("picture"),
    }


def resolve_identity():
    """Identity dict for the request's bearer token, or raise Unauthorized."""
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise Unauthorized("No token provided")

    token = header[len("Bearer "):]

    try:
        return _from_jwt(token)
    except (JWTExtendedException, PyJWTError, KeyError):
        pass

    try:
        return _from_google(token)
    except (ValueError, GoogleAuthError) as e:
        log.info("token_rejected", reason=str(e))
        raise Unauthorized("Invalid token")


def auth_required(fn):
    """Reject the request with 401 unless it carries a valid bearer token."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.current_user = resolve_identity()
        return fn(*args, **kwargs)
    return wrapper


def current_user():
    return g.current_user


def current_user_id():
    return g.current_user["id"]
