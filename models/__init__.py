from .concept import Concept, ConceptCreate, Package, PackageImport, PackageInfo
from .selection import Outcome, Selection, SelectionStatus
from .progress import Grade, Phase, StudyDirection, StudyProgress
from .ledger import DailyLedgerEntry
from .projections import (
    ChartPoint,
    DailyGoalProgress,
    DueReviewState,
    MonthlyStats,
    ProgressSummary,
    TriageState,
)
from .requests import DecisionRequest, GradeRequest, GradeResult

__all__ = [
    'Concept', 'ConceptCreate', 'Package', 'PackageImport', 'PackageInfo',
    'Outcome', 'Selection', 'SelectionStatus',
    'Grade', 'Phase', 'StudyDirection', 'StudyProgress',
    'DailyLedgerEntry',
    'ChartPoint', 'DailyGoalProgress', 'DueReviewState', 'MonthlyStats', 'ProgressSummary', 'TriageState',
    'DecisionRequest', 'GradeRequest', 'GradeResult',
]
