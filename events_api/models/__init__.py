# Import every model so string relationship targets resolve and
# Base.metadata knows all tables.
from events_api.models.events import Event
from events_api.models.registrations import Registration
from events_api.models.users import User

__all__ = ["Event", "Registration", "User"]
