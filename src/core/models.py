from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

STATUS_SAFE = "SAFE"
STATUS_MODERATE = "MODERATE"
STATUS_RISKY = "RISKY"

LABEL_OVER_15 = "OVER 1.5"
LABEL_LOW_CONFIDENCE = "LOW CONFIDENCE"

STREAK_OVER = "over"
STREAK_UNDER = "under"
STREAK_NONE = "none"


def _from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """Costruisce un dataclass ignorando chiavi sconosciute e campi init=False."""
    names = {f.name for f in fields(cls) if f.init}  # type: ignore[arg-type]
    return cls(**{k: v for k, v in data.items() if k in names})


@dataclass(frozen=True)
class MatchResult:
    block_time: str
    home_team: str
    away_team: str
    home_goals: int
    away_goals: int
    match_date: Optional[str] = None
    # valorizzato dallo store all'inserimento
    created_at: Optional[str] = field(default=None, compare=False)
    total_goals: int = field(init=False)
    over_15: bool = field(init=False)
    over_25: bool = field(init=False)

    def __post_init__(self) -> None:
        total = int(self.home_goals) + int(self.away_goals)
        object.__setattr__(self, "total_goals", total)
        object.__setattr__(self, "over_15", total >= 2)
        object.__setattr__(self, "over_25", total >= 3)

    @property
    def dedup_key(self) -> Tuple[str, str, str, int, int]:
        return (self.block_time, self.home_team, self.away_team, self.home_goals, self.away_goals)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MatchResult":
        return _from_dict(cls, data)


@dataclass
class OddsQuote:
    block_time: str
    home_team: str
    away_team: str
    home_odd: float
    draw_odd: float
    away_odd: float
    goal_line: float
    over_odd: float
    under_odd: float
    match_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OddsQuote":
        return _from_dict(cls, data)


@dataclass
class HistoricalStats:
    total_matches: int = 0
    avg_goals: float = 0.0
    over15_rate: float = 0.0
    over25_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TeamStats:
    avg_scored: float = 0.0
    avg_conceded: float = 0.0
    matches_played: int = 0
    over15_rate: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Over25Result:
    """Match concluso con le quote pre-partita usate per l'analisi Over 2.5."""

    match_date: Optional[str]
    home_team: str
    away_team: str
    home_goals: int
    away_goals: int
    home_odd: Optional[float] = None
    away_odd: Optional[float] = None
    over25_odd: Optional[float] = None
    under25_odd: Optional[float] = None
    block_id: Optional[str] = None
    result_over25: bool = field(init=False)

    def __post_init__(self) -> None:
        self.result_over25 = int(self.home_goals) + int(self.away_goals) >= 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Over25Result":
        return _from_dict(cls, data)


@dataclass
class Over25Input:
    home_team: str
    away_team: str
    home_odd: float
    away_odd: float
    over25_odd: float
    under25_odd: float
    match_date: Optional[str] = None
    block_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Over25Input":
        return _from_dict(cls, data)


@dataclass
class Over25Analysis:
    bucket_home: str
    bucket_over25: str
    historical_over25_rate: float
    total_in_bucket: int
    current_streak: int
    streak_type: str
    confidence_indicator: str
    recommendation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BucketRange:
    label: str
    min: float
    max: Optional[float] = None  # None = estremo superiore aperto

    def contains(self, odd: float) -> bool:
        if odd < self.min:
            return False
        return self.max is None or odd <= self.max


@dataclass(frozen=True)
class BucketConfig:
    home_odd_buckets: Tuple[BucketRange, ...]
    over25_odd_buckets: Tuple[BucketRange, ...]


@dataclass
class BucketPerformance:
    bucket_range: str
    total_matches: int
    over25_hits: int
    over25_rate: float
    current_streak: int
    streak_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BucketPerformance":
        return _from_dict(cls, data)


@dataclass
class OddsPattern:
    pattern_hash: str
    home_odd_range: str
    over25_odd_range: str
    total_matches: int
    over25_hits: int
    over25_rate: float
    last_seen: Optional[str]
    current_streak: int = 0
    streak_type: str = STREAK_NONE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OddsPattern":
        return _from_dict(cls, data)


@dataclass
class DayBlockPerformance:
    date: Optional[str]
    total_matches: int
    over25_hits: int
    over25_rate: float
    block_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OverallOver25Stats:
    total_matches: int
    over25_hits: int
    over25_rate: float
    current_streak: int
    streak_type: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Prediction:
    match: OddsQuote
    historical_stats: HistoricalStats
    team_stats: TeamStats
    prediction: str
    confidence: int
    status: str
    calibrated_probability: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PredictionRecord:
    id: str
    created_at: str
    block_time: str
    home_team: str
    away_team: str
    prediction: str
    predicted_probability: float
    status: str
    match_date: Optional[str] = None
    odd: Optional[float] = None
    calibrated_probability: Optional[float] = None
    resolved: bool = False
    resolved_at: Optional[str] = None
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    total_goals: Optional[int] = None
    actual_over_15: Optional[bool] = None
    actual_over_25: Optional[bool] = None
    is_correct: Optional[bool] = None
    profit_loss: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PredictionRecord":
        return _from_dict(cls, data)


@dataclass
class BandAccuracy:
    band: str
    predictions: int
    correct: int
    accuracy: float
    avg_predicted_probability: float


@dataclass
class PerformanceMetrics:
    total_predictions: int = 0
    resolved: int = 0
    pending: int = 0
    evaluated: int = 0
    correct: int = 0
    accuracy: float = 0.0
    rolling_window: int = 50
    rolling_accuracy: float = 0.0
    avg_predicted_probability: float = 0.0
    calibration_factor: float = 1.0
    profit_units: float = 0.0
    yield_pct: float = 0.0
    current_win_streak: int = 0
    current_loss_streak: int = 0
    longest_win_streak: int = 0
    longest_loss_streak: int = 0
    bands: List[BandAccuracy] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "MatchResult",
    "OddsQuote",
    "HistoricalStats",
    "TeamStats",
    "Over25Result",
    "Over25Input",
    "Over25Analysis",
    "BucketRange",
    "BucketConfig",
    "BucketPerformance",
    "OddsPattern",
    "DayBlockPerformance",
    "OverallOver25Stats",
    "Prediction",
    "PredictionRecord",
    "BandAccuracy",
    "PerformanceMetrics",
]
