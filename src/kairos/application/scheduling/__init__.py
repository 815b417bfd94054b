# Application Scheduling Package
from .due_sets import DueSetAggregator, DueSets, compute_due_sets, index_summaries
from .notifications import DueNotification, badge_label, due_today_notifications
from .service import SpacedRepetitionService, merge_collections

__all__ = [
    "DueSetAggregator",
    "DueSets",
    "compute_due_sets",
    "index_summaries",
    "DueNotification",
    "badge_label",
    "due_today_notifications",
    "SpacedRepetitionService",
    "merge_collections",
]
