from services.rule_service import RuleService
from services.placement_service import PlacementService
from services.reorder_coordinator import DragResult, ReorderCoordinator, ReorderOutcome
