import math

from flask import Blueprint, jsonify, request

from tripplanner.core.currency_service import format_currency
from tripplanner.errors import ValidationError
from tripplanner.extensions import get_rate_provider

currencies_bp = Blueprint("currencies", __name__)


@currencies_bp.route("/", methods=["GET"])
def list_currencies():
    return jsonify({"currencies": get_rate_provider().list_currencies()})


@currencies_bp.route("/convert", methods=["GET"])
def convert():
    """
    Convert an amount between two currencies.

    Query params: amount, from, to
    """
    from_currency = (request.args.get("from") or "").upper()
    to_currency = (request.args.get("to") or "").upper()
    if not from_currency or not to_currency:
        raise ValidationError("from and to parameters are required")

    try:
        amount = float(request.args.get("amount", ""))
    except ValueError:
        raise ValidationError("amount must be a number")
    if not math.isfinite(amount):
        raise ValidationError("amount must be a number")

    rates = get_rate_provider()
    rate = rates.rate(from_currency, to_currency)
    converted = amount * rate

    return jsonify({
        "amount": amount,
        "from": from_currency,
        "to": to_currency,
        "rate": rate,
        "converted": round(converted, 2),
        "formatted": format_currency(converted, to_currency),
    })
