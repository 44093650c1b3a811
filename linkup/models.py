"""Registers every ORM model on the shared declarative Base."""
from linkup.notifications.models import Notification
from linkup.social_graph.models import Follow
from linkup.users.models import User

__all__ = ["Follow", "Notification", "User"]
