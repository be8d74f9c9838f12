from enum import Enum


class ManeuverType(str, Enum):
    STRAIGHT = "Straight"
    SLIGHT_RIGHT = "SlightRight"
    RIGHT = "Right"
    SHARP_RIGHT = "SharpRight"
    SLIGHT_LEFT = "SlightLeft"
    LEFT = "Left"
    SHARP_LEFT = "SharpLeft"
    ROUNDABOUT = "Roundabout"
    WAYPOINT_REACHED = "WaypointReached"
    OTHER = "Other"


class NavigationPhase(str, Enum):
    NO_DESTINATION = "no_destination"
    DESTINATION_SELECTED = "destination_selected"
    NAVIGATING = "navigating"


class NarratorStatus(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"


class MarkerRole(str, Enum):
    USER = "user"
    DESTINATION = "destination"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DangerLevel(str, Enum):
    DANGEROUS = "Dangereux"
    SURVEILLANCE = "Surveillance"
    LOW = "Faible"
