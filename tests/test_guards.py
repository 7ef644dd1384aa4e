"""Tests for admission guards."""

from datetime import date

import pytest
from sqlalchemy.orm import Session

from reelgen.db.models import DailyGenerationCountModel, TokenBalanceModel
from reelgen.domain.models import Caller
from reelgen.errors import PreconditionFailedError
from reelgen.services.guards import DailyCapGuard, TokenBalanceGuard, acquire_all


def set_balance(session: Session, user_id: str, balance: int) -> None:
    session.add(TokenBalanceModel(user_id=user_id, balance=balance))
    session.commit()


def balance_of(session: Session, user_id: str) -> int:
    session.expire_all()
    return session.get(TokenBalanceModel, user_id).balance


class TestTokenBalanceGuard:
    def test_charges_cost(self, session: Session) -> None:
        set_balance(session, "u1", 600)
        guard = TokenBalanceGuard(session, cost=250)

        assert guard.acquire(Caller("u1")).allowed
        assert balance_of(session, "u1") == 350

    def test_insufficient_balance_is_denied_without_charge(self, session: Session) -> None:
        set_balance(session, "u1", 100)
        guard = TokenBalanceGuard(session, cost=250)

        decision = guard.acquire(Caller("u1"))

        assert not decision.allowed
        assert "Insufficient token balance" in decision.reason
        assert balance_of(session, "u1") == 100

    def test_unknown_user_is_denied(self, session: Session) -> None:
        assert not TokenBalanceGuard(session).acquire(Caller("nobody")).allowed

    def test_anonymous_caller_is_denied(self, session: Session) -> None:
        decision = TokenBalanceGuard(session).acquire(Caller())
        assert not decision.allowed
        assert decision.reason == "User identity required"

    def test_release_refunds(self, session: Session) -> None:
        set_balance(session, "u1", 250)
        guard = TokenBalanceGuard(session, cost=250)
        guard.acquire(Caller("u1"))

        guard.release(Caller("u1"))

        assert balance_of(session, "u1") == 250


class TestDailyCapGuard:
    def test_allows_up_to_limit(self, session: Session) -> None:
        guard = DailyCapGuard(session, limit=10, today=lambda: date(2026, 1, 5))

        decisions = [guard.acquire(Caller()) for _ in range(11)]

        assert all(d.allowed for d in decisions[:10])
        assert not decisions[10].allowed
        assert decisions[10].reason == (
            "Daily video generation limit reached. Please try again tomorrow."
        )
        session.expire_all()
        assert session.get(DailyGenerationCountModel, "2026-01-05").count == 10

    def test_counter_is_per_day(self, session: Session) -> None:
        today = {"value": date(2026, 1, 5)}
        guard = DailyCapGuard(session, limit=1, today=lambda: today["value"])

        assert guard.acquire(Caller()).allowed
        assert not guard.acquire(Caller()).allowed

        today["value"] = date(2026, 1, 6)
        assert guard.acquire(Caller()).allowed

    def test_release_gives_back_slot(self, session: Session) -> None:
        guard = DailyCapGuard(session, limit=1, today=lambda: date(2026, 1, 5))
        assert guard.acquire(Caller()).allowed

        guard.release(Caller())

        assert guard.acquire(Caller()).allowed


def test_acquire_all_rolls_back_earlier_guards(session: Session) -> None:
    set_balance(session, "u1", 500)
    token_guard = TokenBalanceGuard(session, cost=250)
    cap_guard = DailyCapGuard(session, limit=0, today=lambda: date(2026, 1, 5))

    with pytest.raises(PreconditionFailedError, match="Daily video generation limit"):
        acquire_all([token_guard, cap_guard], Caller("u1"))

    assert balance_of(session, "u1") == 500
