from flask import Blueprint, jsonify, request

from tripplanner.auth.tokens import auth_required, current_user, current_user_id
from tripplanner.errors import ValidationError
from tripplanner.trips.services import TripService
from tripplanner.utils.enums import TripItemType

trips_bp = Blueprint("trips", __name__)


@trips_bp.route("/", methods=["GET"])
@auth_required
def list_trips():
    """Trips owned by or shared with the caller, newest first."""
    return jsonify(TripService.list_for_user(current_user_id()))


@trips_bp.route("/<trip_id>", methods=["GET"])
@auth_required
def get_trip(trip_id):
    return jsonify(TripService.get_for_user(trip_id, current_user_id()))


@trips_bp.route("/", methods=["POST"])
@auth_required
def create_trip():
    """
    Create a trip owned by the caller.

    Request body:
    {
        "name": "Lisbon",
        "startDate": "2025-05-01",
        "endDate": "2025-05-07",
        ...any other trip fields
    }
    """
    data = request.get_json(silent=True) or {}
    return jsonify(TripService.create(data, current_user())), 201


@trips_bp.route("/<trip_id>", methods=["PUT"])
@auth_required
def update_trip(trip_id):
    data = request.get_json(silent=True) or {}
    return jsonify(TripService.update(trip_id, current_user_id(), data))


@trips_bp.route("/<trip_id>", methods=["DELETE"])
@auth_required
def delete_trip(trip_id):
    TripService.delete(trip_id, current_user_id())
    return jsonify({"success": True, "message": "Trip deleted successfully"})


# Booking sub-resources
# POST   /api/trips/<id>/flights|hotels|rides|attractions -> append a booking
# DELETE /api/trips/<id>/<type>/<idx>                      -> remove by index

def _add_item(trip_id, item_type):
    item = request.get_json(silent=True) or {}
    updated = TripService.add_item(trip_id, current_user_id(), item_type, item)
    return jsonify(updated), 201


@trips_bp.route("/<trip_id>/flights", methods=["POST"])
@auth_required
def add_flight(trip_id):
    return _add_item(trip_id, TripItemType.FLIGHTS)


@trips_bp.route("/<trip_id>/hotels", methods=["POST"])
@auth_required
def add_hotel(trip_id):
    return _add_item(trip_id, TripItemType.HOTELS)


@trips_bp.route("/<trip_id>/rides", methods=["POST"])
@auth_required
def add_ride(trip_id):
    return _add_item(trip_id, TripItemType.RIDES)


@trips_bp.route("/<trip_id>/attractions", methods=["POST"])
@auth_required
def add_attraction(trip_id):
    return _add_item(trip_id, TripItemType.ATTRACTIONS)


@trips_bp.route("/<trip_id>/<item_type>/<idx>", methods=["DELETE"])
@auth_required
def remove_item(trip_id, item_type, idx):
    return jsonify(TripService.remove_item(trip_id, current_user_id(), item_type, idx))


# Sharing

@trips_bp.route("/<trip_id>/share", methods=["POST"])
@auth_required
def share_trip(trip_id):
    """
    Share a trip with another registered user.

    Request body:
    {
        "email": "friend@example.com",
        "permission": "view|edit"  // default: edit
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be an object")
    updated = TripService.share(trip_id, current_user_id(), data.get("email"), data.get("permission"))
    return jsonify(updated), 201


@trips_bp.route("/<trip_id>/share/<shared_user_id>", methods=["DELETE"])
@auth_required
def unshare_trip(trip_id, shared_user_id):
    return jsonify(TripService.unshare(trip_id, current_user_id(), shared_user_id))
