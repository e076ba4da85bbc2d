from booknest.models.user import User
from booknest.models.event import Event
from booknest.models.reservation import Reservation

__all__ = ["User", "Event", "Reservation"]
