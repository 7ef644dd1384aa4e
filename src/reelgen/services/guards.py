"""Admission guards applied before a paid generation call.

Guards compose: each one is acquired in order and, if a later guard denies or
the provider call fails, the earlier ones are released. Balance and counter
changes are single conditional UPDATE statements, so two concurrent requests
cannot both pass a check that only one of them should.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import date, datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reelgen.db.models import DailyGenerationCountModel, TokenBalanceModel
from reelgen.domain.models import Caller, GuardDecision
from reelgen.errors import PreconditionFailedError
from reelgen.logging import get_logger

logger = get_logger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class AdmissionGuard(ABC):
    """A reservable admission-control policy."""

    @property
    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def acquire(self, caller: Caller) -> GuardDecision:
        """Check and reserve capacity for one generation."""
        ...

    @abstractmethod
    def release(self, caller: Caller) -> None:
        """Give back capacity reserved by a successful acquire()."""
        ...


class TokenBalanceGuard(AdmissionGuard):
    """Charges a fixed token cost per generation from the caller's balance."""

    def __init__(self, session: Session, cost: int = 250) -> None:
        self.session = session
        self.cost = cost

    @property
    def name(self) -> str:
        return "token_balance"

    def acquire(self, caller: Caller) -> GuardDecision:
        if caller.user_id == "anonymous":
            return GuardDecision.deny("User identity required")

        result = self.session.execute(
            update(TokenBalanceModel)
            .where(
                TokenBalanceModel.user_id == caller.user_id,
                TokenBalanceModel.balance >= self.cost,
            )
            .values(balance=TokenBalanceModel.balance - self.cost)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

        if result.rowcount != 1:
            logger.info("token_balance_insufficient", user_id=caller.user_id, cost=self.cost)
            return GuardDecision.deny(
                f"Insufficient token balance: {self.cost} tokens required per generation"
            )
        logger.info("token_balance_charged", user_id=caller.user_id, cost=self.cost)
        return GuardDecision.allow()

    def release(self, caller: Caller) -> None:
        self.session.execute(
            update(TokenBalanceModel)
            .where(TokenBalanceModel.user_id == caller.user_id)
            .values(balance=TokenBalanceModel.balance + self.cost)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        logger.info("token_balance_refunded", user_id=caller.user_id, cost=self.cost)


class DailyCapGuard(AdmissionGuard):
    """Global cap on generations per UTC day."""

    def __init__(
        self,
        session: Session,
        limit: int = 10,
        today: Callable[[], date] = utc_today,
    ) -> None:
        self.session = session
        self.limit = limit
        self.today = today
        self._reserved_day: str | None = None

    @property
    def name(self) -> str:
        return "daily_cap"

    def _ensure_row(self, day: str) -> None:
        if self.session.get(DailyGenerationCountModel, day) is not None:
            return
        self.session.add(DailyGenerationCountModel(day=day, count=0))
        try:
            self.session.commit()
        except IntegrityError:
            # Another request created today's row first.
            self.session.rollback()

    def acquire(self, caller: Caller) -> GuardDecision:
        day = self.today().isoformat()
        self._ensure_row(day)

        result = self.session.execute(
            update(DailyGenerationCountModel)
            .where(
                DailyGenerationCountModel.day == day,
                DailyGenerationCountModel.count < self.limit,
            )
            .values(count=DailyGenerationCountModel.count + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()

        if result.rowcount != 1:
            logger.info("daily_cap_reached", day=day, limit=self.limit, user_id=caller.user_id)
            return GuardDecision.deny(
                "Daily video generation limit reached. Please try again tomorrow."
            )
        self._reserved_day = day
        return GuardDecision.allow()

    def release(self, caller: Caller) -> None:  # noqa: ARG002
        if self._reserved_day is None:
            return
        self.session.execute(
            update(DailyGenerationCountModel)
            .where(
                DailyGenerationCountModel.day == self._reserved_day,
                DailyGenerationCountModel.count > 0,
            )
            .values(count=DailyGenerationCountModel.count - 1)
            .execution_options(synchronize_session=False)
        )
        self.session.commit()
        self._reserved_day = None


def acquire_all(guards: Sequence[AdmissionGuard], caller: Caller) -> list[AdmissionGuard]:
    """Acquire every guard in order, or none of them.

    Raises:
        PreconditionFailedError: With the denying guard's reason.
    """
    acquired: list[AdmissionGuard] = []
    for guard in guards:
        decision = guard.acquire(caller)
        if not decision.allowed:
            release_all(acquired, caller)
            raise PreconditionFailedError(decision.reason or f"Denied by {guard.name}")
        acquired.append(guard)
    return acquired


def release_all(guards: Sequence[AdmissionGuard], caller: Caller) -> None:
    for guard in reversed(guards):
        try:
            guard.release(caller)
        except Exception as e:
            logger.error("guard_release_failed", guard=guard.name, error=str(e))
