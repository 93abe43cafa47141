"""Periodic auto-expiry scheduler tests."""

from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from gym_backend.core.constants import MembershipType, PaymentStatus
from gym_backend.models.member import Member
from gym_backend.scheduler import (
    AUTO_EXPIRE_JOB_ID,
    start_auto_expire_scheduler,
    stop_scheduler,
)
from gym_backend.services.expiry_service import run_scheduled_auto_expire


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def engine():
    engine = _memory_engine()
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def _add_lapsed_member(engine) -> int:
    with Session(engine) as session:
        member = Member(
            name="Lapsed Member",
            email="lapsed@example.com",
            phone="9000000009",
            phone_digits="9000000009",
            membership_type=MembershipType.MONTHLY,
            start_date=date.today() - timedelta(days=40),
            end_date=date.today() - timedelta(days=10),
            payment_status=PaymentStatus.PAID,
        )
        session.add(member)
        session.commit()
        session.refresh(member)
        assert member.id is not None
        return member.id


def test_scheduler_registers_interval_job_and_stops(engine):
    scheduler = start_auto_expire_scheduler(engine, 60)
    try:
        assert scheduler.running
        job = scheduler.get_job(AUTO_EXPIRE_JOB_ID)
        assert job is not None
        assert job.func is run_scheduled_auto_expire
        assert list(job.args) == [engine]
        assert job.max_instances == 1
        assert job.coalesce is True
        assert isinstance(job.trigger, IntervalTrigger)
        assert job.trigger.interval == timedelta(minutes=60)
    finally:
        stop_scheduler(scheduler)

    assert not scheduler.running


def test_scheduled_sweep_marks_lapsed_members_unpaid(engine):
    member_id = _add_lapsed_member(engine)

    run_scheduled_auto_expire(engine)

    with Session(engine) as session:
        member = session.get(Member, member_id)
        assert member is not None
        assert member.payment_status == PaymentStatus.UNPAID


def test_scheduled_sweep_logs_failures_instead_of_raising(caplog):
    engine = _memory_engine()  # no tables, so the sweep's UPDATE fails

    with caplog.at_level(logging.ERROR, logger="gym_backend.services.expiry_service"):
        run_scheduled_auto_expire(engine)

    assert "Periodic auto-expire failed" in caplog.text
    engine.dispose()
