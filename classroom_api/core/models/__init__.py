from classroom_api.core.models.class_room import ClassRoom, Room
from classroom_api.core.models.content import Assignment, Material, Submission
from classroom_api.core.models.enrollment import Enrollment

__all__ = [
    "Assignment",
    "ClassRoom",
    "Enrollment",
    "Material",
    "Room",
    "Submission",
]
