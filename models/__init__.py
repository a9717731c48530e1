from models.seat_map import SeatPosition, SeatMap, FurnitureItem, Layout
from models.student import Student
from models.rule import Rule, RuleType, PriorityUpdate, GROUP_RULE_TYPES, LOCATION_RULE_TYPES
from models.placement import (
    ConflictType, StudentPlacement, RuleConflict, RuleSatisfactionReport,
    PlacementResult, PlacementOptions, PlacementProgress, PlacementContext,
    PlacementValidation, PlacementRecommendations,
)
from models.errors import FieldError, SeatingError
