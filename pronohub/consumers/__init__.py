"""Consumer layer - sync passes, reconciliation, tournament lifecycle."""

from pronohub.consumers.completion import (
    CompletionResult,
    TournamentCompletionEvaluator,
    completion_decision,
)
from pronohub.consumers.duration import (
    DurationEstimate,
    DurationEstimator,
    OverdueRecalculationResult,
    estimate_custom,
    estimate_knockout,
    estimate_league,
    is_knockout,
)
from pronohub.consumers.fallback import FallbackReconciler, FallbackResult
from pronohub.consumers.primary_sync import ImportResult, PrimarySourceSync, PrimarySyncResult
from pronohub.consumers.realtime_sync import RealtimeResult, RealtimeWindowSync
from pronohub.consumers.runs import (
    run_daily_sync,
    run_fallback,
    run_import,
    run_realtime_sync,
    run_score_sync,
)
from pronohub.consumers.scheduler import (
    SyncScheduler,
    get_scheduler_status,
    start_scheduler,
    stop_scheduler,
)
from pronohub.consumers.score_mapping import (
    apply_score,
    count_total_matchdays,
    map_competition,
    map_match,
)
from pronohub.consumers.staleness import StalenessPolicy, should_accept

__all__ = [
    # Completion
    "CompletionResult",
    "TournamentCompletionEvaluator",
    "completion_decision",
    # Duration
    "DurationEstimate",
    "DurationEstimator",
    "OverdueRecalculationResult",
    "estimate_custom",
    "estimate_knockout",
    "estimate_league",
    "is_knockout",
    # Fallback
    "FallbackReconciler",
    "FallbackResult",
    # Primary / realtime
    "ImportResult",
    "PrimarySourceSync",
    "PrimarySyncResult",
    "RealtimeResult",
    "RealtimeWindowSync",
    # Runs
    "run_daily_sync",
    "run_fallback",
    "run_import",
    "run_realtime_sync",
    "run_score_sync",
    # Scheduler
    "SyncScheduler",
    "get_scheduler_status",
    "start_scheduler",
    "stop_scheduler",
    # Mapping
    "apply_score",
    "count_total_matchdays",
    "map_competition",
    "map_match",
    # Staleness
    "StalenessPolicy",
    "should_accept",
]
