"""Tests for read-side views."""

from datetime import datetime, timedelta

from blocktrust_api.events import queries
from blocktrust_api.events.lifecycle import EventLifecycleManager
from blocktrust_api.events.participation import ParticipationGuard
from blocktrust_api.models import EventType, PetitionEvent, VotingEvent


def _event(end):
    return VotingEvent(start_time=end - timedelta(days=10), end_time=end, options=["A", "B"])


class TestTimeRemaining:
    def test_days_and_hours(self):
        now = datetime(2025, 1, 1, 12, 0, 0)
        remaining = queries.time_remaining(_event(now + timedelta(days=2, hours=5, minutes=30)), now=now)
        assert remaining.days == 2
        assert remaining.hours == 5
        assert remaining.ended is False

    def test_ended_event_clamps_to_zero(self):
        now = datetime(2025, 1, 1, 12, 0, 0)
        remaining = queries.time_remaining(_event(now - timedelta(hours=3)), now=now)
        assert remaining.as_dict() == {"days": 0, "hours": 0, "total_seconds": 0, "ended": True}


class TestProgress:
    def test_partial_progress(self):
        petition = PetitionEvent(target_signatures=200, current_signatures=50)
        assert queries.progress_percent(petition) == 25.0
        assert queries.target_reached(petition) is False

    def test_progress_saturates(self):
        petition = PetitionEvent(target_signatures=10, current_signatures=25)
        assert queries.progress_percent(petition) == 100.0
        assert queries.target_reached(petition) is True

    def test_progress_is_monotonic(self):
        petition = PetitionEvent(target_signatures=7, current_signatures=0)
        previous = -1.0
        for count in range(15):
            petition.current_signatures = count
            current = queries.progress_percent(petition)
            assert current >= previous
            previous = current


def test_tally_lists_every_option(db, admin, open_window):
    start, end = open_window
    event = EventLifecycleManager(db).create_voting_event(admin, "Tally", "", ["A", "B", "C"], start, end)
    assert queries.tally(db, event) == {"A": 0, "B": 0, "C": 0}


def test_active_lists_exclude_cancelled(db, admin, petitioner, open_window):
    start, end = open_window
    lifecycle = EventLifecycleManager(db)
    kept = lifecycle.create_voting_event(admin, "Kept", "", ["A", "B"], start, end)
    dropped = lifecycle.create_voting_event(admin, "Dropped", "", ["A", "B"], start, end)
    lifecycle.create_petition(petitioner, "Petition", "", start, end)
    lifecycle.cancel(admin, EventType.VOTING, dropped.id)

    assert [e.id for e in queries.list_active_voting_events(db)] == [kept.id]
    assert len(queries.list_active_petitions(db)) == 1
    everything = queries.list_all_events(db)
    assert len(everything["voting"]) == 2
    assert len(everything["petitions"]) == 1


def test_list_participants(db, admin, voter, open_window):
    start, end = open_window
    event = EventLifecycleManager(db).create_voting_event(admin, "Who", "", ["A", "B"], start, end)
    ParticipationGuard(db).cast_vote(voter, event.id, "A")

    participants = queries.list_participants(db, EventType.VOTING, event.id)
    assert [p.user_id for p in participants] == [voter.id]
    assert queries.list_participants(db, EventType.PETITION, event.id) == []
