"""Tests for the session lifecycle guard and SessionService."""
import asyncio
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from conftest import T0

from oralprep.db.sessions import SessionRepository
from oralprep.domain.errors import InvalidTransitionError, SessionNotFoundError
from oralprep.domain.lifecycle import apply_transition, can_transition
from oralprep.domain.models import ImageContext, PracticeSession, SessionPhase, Turn
from oralprep.services.session_service import SessionService


@pytest.mark.parametrize("current,target", [
    (SessionPhase.PREPARING, SessionPhase.PRESENTING),
    (SessionPhase.PRESENTING, SessionPhase.CONVERSING),
    (SessionPhase.CONVERSING, SessionPhase.COMPLETED),
    (SessionPhase.PREPARING, SessionPhase.TERMINATED),
    (SessionPhase.PRESENTING, SessionPhase.TERMINATED),
    (SessionPhase.CONVERSING, SessionPhase.TERMINATED),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)


@pytest.mark.parametrize("terminal", [SessionPhase.COMPLETED, SessionPhase.TERMINATED])
def test_terminal_phases_are_absorbing(terminal):
    session = PracticeSession(id="s", status=terminal)
    for target in SessionPhase:
        with pytest.raises(InvalidTransitionError):
            apply_transition(session, target)


def test_skipping_presentation_fails_and_leaves_session_unchanged():
    session = PracticeSession(id="s", status=SessionPhase.PREPARING)

    with pytest.raises(InvalidTransitionError, match="Cannot transition from PREPARING to CONVERSING"):
        apply_transition(session, SessionPhase.CONVERSING)

    assert session.status == SessionPhase.PREPARING
    assert session.converse_started_at is None


def test_transition_stamps_phase_timestamp_once():
    first = T0 + timedelta(minutes=1)
    session = PracticeSession(id="s", status=SessionPhase.PRESENTING, converse_started_at=first)

    updated = apply_transition(session, SessionPhase.CONVERSING, now=T0 + timedelta(minutes=5))

    assert updated.status == SessionPhase.CONVERSING
    assert updated.converse_started_at == first
    assert session.status == SessionPhase.PRESENTING


def test_transition_stamps_each_phase():
    session = PracticeSession(id="s")
    session = apply_transition(session, SessionPhase.PRESENTING, now=T0)
    session = apply_transition(session, SessionPhase.CONVERSING, now=T0 + timedelta(minutes=3))
    session = apply_transition(session, SessionPhase.COMPLETED, now=T0 + timedelta(minutes=9))

    assert session.present_started_at == T0
    assert session.converse_started_at == T0 + timedelta(minutes=3)
    assert session.completed_at == T0 + timedelta(minutes=9)


def test_advance_persists_and_inserts_presentation_turn(repository):
    service = SessionService(repository)

    async def scenario():
        await service.advance("session-new", SessionPhase.PRESENTING, now=T0)
        return await service.advance(
            "session-new", SessionPhase.CONVERSING,
            presentation_text="Voy a hablar de la imagen.",
            now=T0 + timedelta(minutes=3),
        )

    updated = asyncio.run(scenario())

    assert updated.status == SessionPhase.CONVERSING
    assert updated.transcript[0].role == "presentation"
    assert updated.transcript[0].content == "Voy a hablar de la imagen."
    assert repository.get("session-new") == updated


def test_advance_replaces_existing_presentation_turn(repository):
    repository.save(PracticeSession(
        id="session-pres",
        status=SessionPhase.PRESENTING,
        transcript=[Turn(role="presentation", content="borrador"), Turn(role="examiner", content="Hola")],
    ))

    updated = asyncio.run(SessionService(repository).advance(
        "session-pres", SessionPhase.CONVERSING, presentation_text="versión final"))

    assert [turn.content for turn in updated.transcript] == ["versión final", "Hola"]


def test_advance_rejects_invalid_transition_without_writing(repository):
    service = SessionService(repository)
    before = repository.get("session-1")

    with pytest.raises(InvalidTransitionError):
        asyncio.run(service.advance("session-1", SessionPhase.CONVERSING))

    assert repository.get("session-1") == before


def test_advance_unknown_session(repository):
    with pytest.raises(SessionNotFoundError):
        asyncio.run(SessionService(repository).advance("missing", SessionPhase.PRESENTING))


def test_terminate_stamps_completed_at(repository):
    ended = T0 + timedelta(minutes=6)

    updated = asyncio.run(SessionService(repository).terminate("session-live", now=ended))

    assert updated.status == SessionPhase.TERMINATED
    assert updated.completed_at == ended


def test_terminate_completed_session_fails(repository):
    with pytest.raises(InvalidTransitionError):
        asyncio.run(SessionService(repository).terminate("session-1"))


def test_create_starts_preparing_session(repository):
    context = ImageContext(cultural_context="La Tomatina", theme="Ingenio humano")

    created = asyncio.run(SessionService(repository).create("student-3", context, now=T0))

    assert created.status == SessionPhase.PREPARING
    assert created.prep_started_at == T0
    assert created.transcript == []
    assert created.present_started_at is None
    assert repository.get(created.id) is created
    assert repository.get(created.id).image_context.theme == "Ingenio humano"


def test_created_sessions_get_distinct_ids(repository):
    service = SessionService(repository)

    first = asyncio.run(service.create("student-3"))
    second = asyncio.run(service.create("student-3"))

    assert first.id != second.id
    assert first.prep_started_at.tzinfo is not None


def test_repository_insert_writes_full_row():
    client = MagicMock()
    session = PracticeSession(
        id="session-9",
        user_id="student-3",
        image_context=ImageContext(cultural_context="La Tomatina", talking_points=["fiesta"]),
        prep_started_at=T0,
    )

    SessionRepository(client=client, table="practice_sessions").insert(session)

    client.table.assert_called_with("practice_sessions")
    row = client.table.return_value.insert.call_args.args[0]
    assert row["id"] == "session-9"
    assert row["user_id"] == "student-3"
    assert row["status"] == "PREPARING"
    assert row["transcript"] == []
    assert row["prep_started_at"] == "2025-03-14T10:00:00Z"
    assert row["image_context"]["culturalContext"] == "La Tomatina"
    assert row["image_context"]["talkingPoints"] == ["fiesta"]
