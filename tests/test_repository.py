"""Tests for the in-memory league store - transactions, locks and rulesets."""

import threading

import pytest

from src.roster_manager.errors import FailureKind, StorageError
from src.roster_manager.models import LeagueRuleset, Round, RoundSettlementRecord, Transfer
from src.roster_manager.roster_controller import RosterController

LEAGUE_ID = "test-league"


class TestLeagueRuleset:
    def test_defaults(self, ruleset):
        assert (ruleset.roster_size, ruleset.starters, ruleset.substitutes) == (12, 8, 4)
        assert ruleset.get_requirement("GOALKEEPER") == {"total": 2, "starters": 1, "substitutes": 1}

    def test_unknown_position_requirement_is_zero(self, ruleset):
        assert ruleset.get_requirement("COACH") == {"total": 0, "starters": 0, "substitutes": 0}

    def test_split_must_match_size(self):
        with pytest.raises(ValueError, match="must equal roster_size"):
            LeagueRuleset(league_id="x", roster_size=11, position_requirements={})

    def test_requirements_must_match_split(self):
        with pytest.raises(ValueError, match="position_requirements"):
            LeagueRuleset(
                league_id="x",
                position_requirements={"GOALKEEPER": {"total": 12, "starters": 8, "substitutes": 3}},
            )


class TestTransactions:
    def test_rollback_restores_all_tables(self, repository):
        with pytest.raises(RuntimeError):
            with repository.transaction():
                repository.upsert_settlement(RoundSettlementRecord("x", "r1", 10, 1))
                repository.add_round(Round(round_id="r3", league_id=LEAGUE_ID, sequence=3))
                raise RuntimeError("boom")
        assert repository.list_settlements() == []
        assert repository.get_round("r3") is None

    def test_nested_transaction_joins_outer(self, repository):
        with pytest.raises(RuntimeError):
            with repository.transaction():
                with repository.transaction():
                    repository.upsert_settlement(RoundSettlementRecord("x", "r1", 10, 1))
                raise RuntimeError("boom")
        assert repository.list_settlements() == []

    def test_commit_keeps_changes(self, repository):
        with repository.transaction():
            repository.upsert_settlement(RoundSettlementRecord("x", "r1", 10, 1))
        assert repository.cumulative_points("x") == 10

    def test_rollback_removes_transfer_and_restores_roster(self, repository, roster):
        with pytest.raises(RuntimeError):
            with repository.transaction():
                repository.add_transfer(
                    Transfer.create(roster.roster_id, "alice", "r1", "def4", "def5")
                )
                stored = repository.get_roster(roster.roster_id)
                stored.budget_remaining = 0
                repository.save_roster(stored)
                raise RuntimeError("boom")
        assert repository.list_transfers(roster_id=roster.roster_id) == []
        restored = repository.get_roster(roster.roster_id)
        assert restored.budget_remaining == roster.budget_remaining
        assert restored.version == roster.version

    def test_rollback_keeps_other_threads_commits(self, repository, roster):
        inside = threading.Event()
        other_done = threading.Event()
        errors = []

        def failing_transaction():
            try:
                with repository.transaction():
                    repository.upsert_settlement(RoundSettlementRecord("x", "r1", 10, 1))
                    inside.set()
                    other_done.wait(5)
                    raise RuntimeError("boom")
            except RuntimeError as e:
                errors.append(e)

        worker = threading.Thread(target=failing_transaction)
        worker.start()
        assert inside.wait(5)
        repository.upsert_settlement(RoundSettlementRecord("y", "r1", 7, 2))
        repository.save_roster(repository.get_roster(roster.roster_id))
        other_done.set()
        worker.join()

        assert len(errors) == 1
        assert repository.get_settlement("x", "r1") is None
        assert repository.get_settlement("y", "r1").points == 7
        assert repository.get_roster(roster.roster_id).version == roster.version + 1


class TestRosterStore:
    def test_one_roster_per_user_and_league(self, repository, roster):
        with pytest.raises(StorageError):
            repository.add_roster(roster)

    def test_returned_rosters_are_copies(self, repository, roster):
        copy = repository.get_roster(roster.roster_id)
        copy.slots[0].is_starter = False
        assert repository.get_roster(roster.roster_id).slots[0].is_starter

    def test_save_unknown_roster(self, repository, roster):
        roster.roster_id = "missing"
        with pytest.raises(StorageError):
            repository.save_roster(roster)

    def test_rounds_sorted_by_sequence(self, repository):
        repository.add_round(Round(round_id="r0", league_id=LEAGUE_ID, sequence=0))
        assert [r.round_id for r in repository.list_rounds(LEAGUE_ID)] == ["r0", "r1", "r2"]


class TestConcurrentTransfers:
    def test_quota_holds_under_concurrency(self, repository, roster):
        repository.get_ruleset(LEAGUE_ID).max_transfers_per_round = 1
        controller = RosterController(repository)
        results = []

        def attempt():
            results.append(
                controller.commit_transfer("alice", roster.roster_id, "def4", "def5")
            )

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(1 for r in results if r.ok) == 1
        assert all(
            r.failure.kind in (FailureKind.TRANSFER_QUOTA_EXCEEDED, FailureKind.NOT_FOUND)
            for r in results if not r.ok
        )
        assert repository.count_transfers(roster.roster_id, "r1") == 1
