#Expose the high-level pipeline pieces:
#Stop ordering
#Ranking / selection
#Dispatcher orchestrator (the "one call" entry point)
#Dispatch board (state the dispatcher works on)

from .dispatcher import Dispatcher #the main entry point: find_best_vehicle()
from .models import AssignmentAlternative, AssignmentError, AssignmentResult, ErrorKey
from .policy import DispatchPolicy, default_policy
from .ranking import build_alternatives, select_vehicle
from .route_optimizer import optimize_nearest_neighbor, optimize_with_advisor
from .board import DispatchBoard, SmsPreview

__all__ = [
    "Dispatcher",
    "AssignmentAlternative",
    "AssignmentError",
    "AssignmentResult",
    "ErrorKey",
    "DispatchPolicy",
    "default_policy",
    "build_alternatives",
    "select_vehicle",
    "optimize_nearest_neighbor",
    "optimize_with_advisor",
    "DispatchBoard",
    "SmsPreview",
]
