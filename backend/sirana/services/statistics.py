"""
Surveillance statistics - record counts, time windows, breakdowns, rankings and trends.

All computations are read-only. Time windows are evaluated in server local time
against a single reference instant (``now``) captured once per call, so a
dashboard's counters are mutually consistent.
"""
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..core.errors import StorageError
from ..core.time_utils import day_bounds, now_local, start_of_day, start_of_month, start_of_week
from ..models.assessment import FollowUp, MedicalAssessment
from ..models.base import Database
from ..models.disaster import DisasterEvent, DisasterStatus
from ..models.environment import EnvironmentAssessment
from ..models.needs import NEEDS_LIST_FIELDS, NeedsIdentification
from ..models.patient import Patient
from ..models.user import User
from ..schemas.assessment import AssessmentRead
from ..schemas.disaster import DisasterRead
from ..schemas.patient import PatientRead

logger = logging.getLogger(__name__)


@dataclass
class WindowCounts:
    today: int
    this_week: int
    this_month: int


@dataclass
class RankedValue:
    value: str
    count: int


@dataclass
class TrendPoint:
    date: date
    patients: int
    assessments: int


@dataclass
class PatientStats:
    total: int
    by_age_group: Dict[str, int]
    by_sex: Dict[str, int]
    created: WindowCounts


@dataclass
class AssessmentStats:
    total: int
    by_follow_up: Dict[str, int]
    by_anamnesis_type: Dict[str, int]
    created: WindowCounts
    visits_today: int
    top_diagnoses: List[RankedValue]


@dataclass
class EnvironmentStats:
    total: int
    by_water_access: Dict[str, int]
    by_sanitation: Dict[str, int]


@dataclass
class NeedsStats:
    total: int
    by_medicine_priority: Dict[str, int]
    by_equipment_priority: Dict[str, int]
    by_infrastructure_priority: Dict[str, int]
    top_medicines: List[RankedValue]
    top_medical_equipment: List[RankedValue]
    top_infrastructure: List[RankedValue]


@dataclass
class DisasterStats:
    total: int
    active: int
    closed: int
    by_type: Dict[str, int]
    recent: List[DisasterRead]


@dataclass
class Totals:
    patients: int
    assessments: int
    environments: int
    needs: int
    users: int


@dataclass
class Dashboard:
    generated_at: datetime
    totals: Totals
    patients: WindowCounts
    assessments: WindowCounts
    by_age_group: Dict[str, int]
    by_sex: Dict[str, int]
    by_follow_up: Dict[str, int]
    by_water_access: Dict[str, int]
    by_sanitation: Dict[str, int]
    trend: List[TrendPoint]
    top_diagnoses: List[RankedValue]
    recent_patients: List[PatientRead] = field(default_factory=list)
    recent_assessments: List[AssessmentRead] = field(default_factory=list)
    active_disasters: List[DisasterRead] = field(default_factory=list)


@dataclass
class UserDashboard:
    """Counters restricted to the records one user created."""
    user_id: str
    generated_at: datetime
    total_patients: int
    total_assessments: int
    patients: WindowCounts
    assessments: WindowCounts
    recent_patients: List[PatientRead] = field(default_factory=list)
    recent_assessments: List[AssessmentRead] = field(default_factory=list)


def count_rows(db: Session, model, *criteria) -> int:
    return db.query(func.count(model.id)).filter(*criteria).scalar() or 0


def group_counts(db: Session, column, *criteria) -> Dict[str, int]:
    """Occurrences per observed value; values that never occur are absent."""
    rows = (
        db.query(column, func.count())
        .filter(*criteria)
        .group_by(column)
        .order_by(column)
        .all()
    )
    return {value: n for value, n in rows if value is not None and n > 0}


def rank_values(values: Iterable[str], limit: int) -> List[RankedValue]:
    """
    Highest counts first. Equal counts keep first-seen order, so feeding values
    in a stable order (oldest record first) makes the ranking deterministic.
    """
    counter = Counter(v for v in values if v)
    return [RankedValue(value=v, count=n) for v, n in counter.most_common(limit)]


def scope(model, created_by: Optional[str]) -> list:
    return [model.created_by == created_by] if created_by else []


class StatisticsService:
    """
    Aggregation over the record store.

    Each public method opens its own session from ``database``; the dashboards
    run their independent queries concurrently on a thread pool, one session per
    task, and join them before returning.
    """

    def __init__(
        self,
        database: Database,
        now: Optional[Callable[[], datetime]] = None,
        week_starts_on: Optional[int] = None,
        top_n: Optional[int] = None,
        trend_days: Optional[int] = None,
        recent_limit: Optional[int] = None,
        max_workers: Optional[int] = None,
    ):
        self.database = database
        self.now = now or now_local
        self.week_starts_on = settings.WEEK_STARTS_ON if week_starts_on is None else week_starts_on
        self.top_n = top_n or settings.TOP_N
        self.trend_days = trend_days or settings.TREND_DAYS
        self.recent_limit = recent_limit or settings.RECENT_LIMIT
        self.max_workers = max_workers or settings.STATS_MAX_WORKERS

    # ------------------------------------------------------------ plumbing

    def _run(self, task: Callable[[Session], object]):
        with self.database.session_scope() as db:
            try:
                return task(db)
            except SQLAlchemyError as exc:
                logger.error("Statistics query failed: %s", exc)
                raise StorageError("Could not compute statistics") from exc

    def _fan_out(self, tasks: Dict[str, Callable[[Session], object]]) -> Dict[str, object]:
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = {name: pool.submit(self._run, task) for name, task in tasks.items()}
            return {name: future.result() for name, future in futures.items()}

    # ------------------------------------------------------------- primitives

    def windows(self, db: Session, model, moment: datetime, *criteria) -> WindowCounts:
        def since(start: datetime) -> int:
            return count_rows(db, model, model.created_at >= start, model.created_at <= moment, *criteria)

        return WindowCounts(
            today=since(start_of_day(moment)),
            this_week=since(start_of_week(moment, self.week_starts_on)),
            this_month=since(start_of_month(moment)),
        )

    def trend(self, db: Session, moment: datetime, *, created_by: Optional[str] = None) -> List[TrendPoint]:
        """One (patients, assessments) pair per calendar day, oldest first."""
        today = moment.date()
        points = []
        for offset in range(self.trend_days - 1, -1, -1):
            day = today - timedelta(days=offset)
            start, end = day_bounds(day)
            points.append(
                TrendPoint(
                    date=day,
                    patients=count_rows(
                        db, Patient, Patient.created_at >= start, Patient.created_at < end,
                        *scope(Patient, created_by),
                    ),
                    assessments=count_rows(
                        db, MedicalAssessment,
                        MedicalAssessment.created_at >= start, MedicalAssessment.created_at < end,
                        *scope(MedicalAssessment, created_by),
                    ),
                )
            )
        return points

    def top_diagnoses(self, db: Session, *criteria) -> List[RankedValue]:
        rows = (
            db.query(MedicalAssessment.working_diagnosis)
            .filter(*criteria)
            .order_by(MedicalAssessment.created_at, MedicalAssessment.id)
        )
        return rank_values((r.working_diagnosis for r in rows), self.top_n)

    def top_needs(self, db: Session, *criteria) -> Dict[str, List[RankedValue]]:
        """Top items per needs list, flattened across all matching records."""
        columns = [getattr(NeedsIdentification, name) for name in NEEDS_LIST_FIELDS]
        rows = (
            db.query(*columns)
            .filter(*criteria)
            .order_by(NeedsIdentification.created_at, NeedsIdentification.id)
            .all()
        )
        result = {}
        for index, name in enumerate(NEEDS_LIST_FIELDS):
            result[name] = rank_values(
                (item for row in rows for item in (row[index] or [])), self.top_n
            )
        return result

    def recent_patients(self, db: Session, created_by: Optional[str] = None) -> List[PatientRead]:
        rows = (
            db.query(Patient)
            .options(joinedload(Patient.creator))
            .filter(*scope(Patient, created_by))
            .order_by(Patient.created_at.desc(), Patient.id.desc())
            .limit(self.recent_limit)
            .all()
        )
        return [PatientRead.model_validate(r) for r in rows]

    def recent_assessments(self, db: Session, created_by: Optional[str] = None) -> List[AssessmentRead]:
        rows = (
            db.query(MedicalAssessment)
            .options(joinedload(MedicalAssessment.patient), joinedload(MedicalAssessment.creator))
            .filter(*scope(MedicalAssessment, created_by))
            .order_by(MedicalAssessment.created_at.desc(), MedicalAssessment.id.desc())
            .limit(self.recent_limit)
            .all()
        )
        return [AssessmentRead.model_validate(r) for r in rows]

    def active_disasters(self, db: Session) -> List[DisasterRead]:
        rows = (
            db.query(DisasterEvent)
            .filter(DisasterEvent.status == DisasterStatus.ACTIVE.value)
            .order_by(DisasterEvent.occurrence_date.desc(), DisasterEvent.id.desc())
            .all()
        )
        return [DisasterRead.model_validate(r) for r in rows]

    # ------------------------------------------------------ per-entity bundles

    def patient_stats(self, created_by: Optional[str] = None) -> PatientStats:
        moment = self.now()

        def task(db: Session) -> PatientStats:
            criteria = scope(Patient, created_by)
            return PatientStats(
                total=count_rows(db, Patient, *criteria),
                by_age_group=group_counts(db, Patient.age_group, *criteria),
                by_sex=group_counts(db, Patient.sex, *criteria),
                created=self.windows(db, Patient, moment, *criteria),
            )

        return self._run(task)

    def assessment_stats(self, created_by: Optional[str] = None) -> AssessmentStats:
        moment = self.now()

        def task(db: Session) -> AssessmentStats:
            criteria = scope(MedicalAssessment, created_by)
            return AssessmentStats(
                total=count_rows(db, MedicalAssessment, *criteria),
                by_follow_up=group_counts(db, MedicalAssessment.follow_up, *criteria),
                by_anamnesis_type=group_counts(db, MedicalAssessment.anamnesis_type, *criteria),
                created=self.windows(db, MedicalAssessment, moment, *criteria),
                visits_today=count_rows(
                    db, MedicalAssessment, MedicalAssessment.visit_date == moment.date(), *criteria
                ),
                top_diagnoses=self.top_diagnoses(db, *criteria),
            )

        return self._run(task)

    def environment_stats(self, created_by: Optional[str] = None) -> EnvironmentStats:
        def task(db: Session) -> EnvironmentStats:
            criteria = scope(EnvironmentAssessment, created_by)
            return EnvironmentStats(
                total=count_rows(db, EnvironmentAssessment, *criteria),
                by_water_access=group_counts(db, EnvironmentAssessment.clean_water_access, *criteria),
                by_sanitation=group_counts(db, EnvironmentAssessment.sanitation_condition, *criteria),
            )

        return self._run(task)

    def needs_stats(self, created_by: Optional[str] = None) -> NeedsStats:
        def task(db: Session) -> NeedsStats:
            criteria = scope(NeedsIdentification, created_by)
            top = self.top_needs(db, *criteria)
            return NeedsStats(
                total=count_rows(db, NeedsIdentification, *criteria),
                by_medicine_priority=group_counts(db, NeedsIdentification.medicine_priority, *criteria),
                by_equipment_priority=group_counts(db, NeedsIdentification.equipment_priority, *criteria),
                by_infrastructure_priority=group_counts(
                    db, NeedsIdentification.infrastructure_priority, *criteria
                ),
                top_medicines=top["medicines"],
                top_medical_equipment=top["medical_equipment"],
                top_infrastructure=top["infrastructure"],
            )

        return self._run(task)

    def disaster_stats(self) -> DisasterStats:
        def task(db: Session) -> DisasterStats:
            recent = (
                db.query(DisasterEvent)
                .order_by(DisasterEvent.occurrence_date.desc(), DisasterEvent.created_at.desc())
                .limit(self.recent_limit)
                .all()
            )
            return DisasterStats(
                total=count_rows(db, DisasterEvent),
                active=count_rows(db, DisasterEvent, DisasterEvent.status == DisasterStatus.ACTIVE.value),
                closed=count_rows(db, DisasterEvent, DisasterEvent.status == DisasterStatus.CLOSED.value),
                by_type=group_counts(db, DisasterEvent.disaster_type),
                recent=[DisasterRead.model_validate(r) for r in recent],
            )

        return self._run(task)

    def follow_up_counts(self, created_by: Optional[str] = None) -> Dict[str, int]:
        """Assessments per follow-up action, e.g. {"discharged": 3, "referred": 2}."""
        return self._run(
            lambda db: group_counts(db, MedicalAssessment.follow_up, *scope(MedicalAssessment, created_by))
        )

    # ------------------------------------------------------------- dashboards

    def dashboard(self) -> Dashboard:
        moment = self.now()
        results = self._fan_out({
            "totals": lambda db: Totals(
                patients=count_rows(db, Patient),
                assessments=count_rows(db, MedicalAssessment),
                environments=count_rows(db, EnvironmentAssessment),
                needs=count_rows(db, NeedsIdentification),
                users=count_rows(db, User),
            ),
            "patients": lambda db: self.windows(db, Patient, moment),
            "assessments": lambda db: self.windows(db, MedicalAssessment, moment),
            "by_age_group": lambda db: group_counts(db, Patient.age_group),
            "by_sex": lambda db: group_counts(db, Patient.sex),
            "by_follow_up": lambda db: group_counts(db, MedicalAssessment.follow_up),
            "by_water_access": lambda db: group_counts(db, EnvironmentAssessment.clean_water_access),
            "by_sanitation": lambda db: group_counts(db, EnvironmentAssessment.sanitation_condition),
            "trend": lambda db: self.trend(db, moment),
            "top_diagnoses": lambda db: self.top_diagnoses(db),
            "recent_patients": lambda db: self.recent_patients(db),
            "recent_assessments": lambda db: self.recent_assessments(db),
            "active_disasters": self.active_disasters,
        })
        logger.debug("Dashboard computed at %s", moment.isoformat())
        return Dashboard(generated_at=moment, **results)

    def user_dashboard(self, user_id: str) -> UserDashboard:
        moment = self.now()
        results = self._fan_out({
            "total_patients": lambda db: count_rows(db, Patient, *scope(Patient, user_id)),
            "total_assessments": lambda db: count_rows(
                db, MedicalAssessment, *scope(MedicalAssessment, user_id)
            ),
            "patients": lambda db: self.windows(db, Patient, moment, *scope(Patient, user_id)),
            "assessments": lambda db: self.windows(
                db, MedicalAssessment, moment, *scope(MedicalAssessment, user_id)
            ),
            "recent_patients": lambda db: self.recent_patients(db, created_by=user_id),
            "recent_assessments": lambda db: self.recent_assessments(db, created_by=user_id),
        })
        return UserDashboard(user_id=user_id, generated_at=moment, **results)


def referral_breakdown(by_follow_up: Dict[str, int]) -> Dict[str, int]:
    """Complete follow-up sweep (zero-filled), for summaries that list every action."""
    return {action.value: by_follow_up.get(action.value, 0) for action in FollowUp}
