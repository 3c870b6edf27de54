from flask import Blueprint, current_app, jsonify, request

from tripplanner.auth.tokens import auth_required, current_user_id
from tripplanner.expenses.services import ExpenseService
from tripplanner.extensions import get_rate_provider

expenses_bp = Blueprint("expenses", __name__)


@expenses_bp.route("/<trip_id>/expenses", methods=["GET"])
@auth_required
def list_expenses(trip_id):
    """
    List a trip's expenses.

    Query params:
        category: only this category ("all" or absent for every category)
        participant: only expenses this user paid for or shares in
    """
    expenses = ExpenseService.list_for_trip(
        trip_id,
        current_user_id(),
        category=request.args.get("category"),
        participant=request.args.get("participant"),
    )
    return jsonify({"expenses": expenses})


@expenses_bp.route("/<trip_id>/expenses", methods=["POST"])
@auth_required
def add_expense(trip_id):
    """
    Add an expense to a trip.

    Request body:
    {
        "title": "Dinner",
        "amount": 90,
        "currency": "EUR",
        "paidBy": "user-1" | [{"userId": "user-1", "amount": 60}, ...],
        "splitMethod": "equal|custom-amount|custom-percentage",
        "splits": [{"userId": "user-1", "amount": 30, "percentage": 33.3}, ...],
        "date": "2025-05-02",
        "category": "food|hotel|ride|activity|shopping|other",
        "notes": "",
        "linkedItemType": "hotel|flight|ride|attraction",  // optional
        "linkedItemId": "hotel-0"                          // optional
    }
    """
    data = request.get_json(silent=True) or {}
    expense = ExpenseService.add(trip_id, current_user_id(), data)
    return jsonify(expense), 201


@expenses_bp.route("/<trip_id>/expenses/<expense_id>", methods=["PUT"])
@auth_required
def update_expense(trip_id, expense_id):
    data = request.get_json(silent=True) or {}
    return jsonify(ExpenseService.update(trip_id, current_user_id(), expense_id, data))


@expenses_bp.route("/<trip_id>/expenses/<expense_id>", methods=["DELETE"])
@auth_required
def delete_expense(trip_id, expense_id):
    ExpenseService.delete(trip_id, current_user_id(), expense_id)
    return jsonify({"success": True})


@expenses_bp.route("/<trip_id>/balances", methods=["GET"])
@auth_required
def get_balances(trip_id):
    """
    Per-participant balances in the pivot currency.

    Positive balance = is owed money
    Negative balance = owes money

    Query params:
        currency: display currency for convertedTotal (default: pivot currency)
    """
    report = ExpenseService.balances(
        trip_id,
        current_user_id(),
        get_rate_provider(),
        current_app.config["PIVOT_CURRENCY"],
        request.args.get("currency"),
    )
    return jsonify(report.to_dict())
