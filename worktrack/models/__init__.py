from .profile import Profile
from .client import Client
from .request import Request, RequestStatus, RequestType, EVERYONE
from .comment import RequestComment
from .cost_tracker import TimeCostEntry
from .activity import ActivityLog, EntityType
from .sequence import Sequence

__all__ = [
    "Profile",
    "Client",
    "Request", "RequestStatus", "RequestType", "EVERYONE",
    "RequestComment",
    "TimeCostEntry",
    "ActivityLog", "EntityType",
    "Sequence",
]
