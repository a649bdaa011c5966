"""Service types and calendar constants shared by the order request modules."""

FOOD = "Food"
BOXES = "Boxes"
CUSTOM = "Custom"
PRODUCE = "Produce"

SERVICE_TYPES = (FOOD, BOXES, CUSTOM, PRODUCE)

# Calendar order; multi-day structures list their days in this order
WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# Keys used to order confirmed orders, first present wins
TIMESTAMP_FIELDS = ("createdAt", "updatedAt", "timestamp")


def require_service_type(service_type: str) -> str:
    """Return the service type or raise if it is not one of the four known types."""
    if service_type not in SERVICE_TYPES:
        raise ValueError(
            f"Invalid serviceType {service_type!r}; expected one of {', '.join(SERVICE_TYPES)}"
        )
    return service_type
