from enum import Enum


class SplitMethod(str, Enum):
    EQUAL = "equal"
    CUSTOM_AMOUNT = "custom-amount"
    CUSTOM_PERCENTAGE = "custom-percentage"


class ExpenseCategory(str, Enum):
    FOOD = "food"
    HOTEL = "hotel"
    RIDE = "ride"
    ACTIVITY = "activity"
    SHOPPING = "shopping"
    OTHER = "other"


class LinkedItemType(str, Enum):
    HOTEL = "hotel"
    FLIGHT = "flight"
    RIDE = "ride"
    ATTRACTION = "attraction"


class TripItemType(str, Enum):
    """Booking lists stored on a trip document."""
    FLIGHTS = "flights"
    HOTELS = "hotels"
    RIDES = "rides"
    ATTRACTIONS = "attractions"


class Permission(str, Enum):
    VIEW = "view"
    EDIT = "edit"
