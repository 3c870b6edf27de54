from bcrypt import checkpw, gensalt, hashpw
from flask import Blueprint, jsonify, request

import structlog

from tripplanner.auth.tokens import auth_required, current_user, issue_token
from tripplanner.errors import Conflict, NotFound, Unauthorized, ValidationError
from tripplanner.users.model import User
from tripplanner.utils.validators import has_strings

log = structlog.get_logger(__name__)

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}

    if not has_strings(data, "email", "password", "name"):
        raise ValidationError("Email, password, and name are required")

    if User.find_by_email(data["email"]):
        raise Conflict("Email already registered")

    password_hash = hashpw(data["password"].encode(), gensalt()).decode()
    user = User.create(data["email"], data["name"], password_hash)
    log.info("user_registered", user_id=user["id"])

    return jsonify({
        "user": User(user).to_public(),
        "token": issue_token(user),
    }), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}

    if not has_strings(data, "email", "password"):
        raise ValidationError("Email and password are required")

    user = User.find_by_email(data["email"])
    if not user or not user.get("password_hash"):
        raise Unauthorized("Invalid email or password")

    if not checkpw(data["password"].encode(), user["password_hash"].encode()):
        raise Unauthorized("Invalid email or password")

    return jsonify({
        "user": User(user).to_public(),
        "token": issue_token(user),
    })


@auth_bp.route("/me", methods=["GET"])
@auth_required
def me():
    identity = current_user()
    user = User.find_by_id(identity["id"])

    if user:
        return jsonify(User(user).to_public())

    # Google sign-ins have no stored account; the token is the profile
    if identity.get("email"):
        return jsonify(identity)

    raise NotFound("User not found")
