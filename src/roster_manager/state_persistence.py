"""State persistence - save and load league state to/from JSON files."""

import dataclasses
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from src.roster_manager.config import LEAGUES_DIR
from src.roster_manager.models import (
    Athlete,
    CaptainType,
    LeagueRuleset,
    Match,
    MatchStatistic,
    Roster,
    RosterSlot,
    Round,
    RoundSettlementRecord,
    Transfer,
)
from src.roster_manager.repository import InMemoryRepository

logger = logging.getLogger(__name__)


class StatePersistence:
    """Handles saving and loading whole leagues to/from JSON files."""

    def __init__(self, storage_dir: Optional[Path] = None):
        self.storage_dir = storage_dir or LEAGUES_DIR
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save_league(self, repository: InMemoryRepository, league_id: str) -> Path:
        """Save every record of a league to JSON.

        Args:
            repository: Store holding the league.
            league_id: League to save.

        Returns:
            Path to the saved file.
        """
        ruleset = repository.get_ruleset(league_id)
        if ruleset is None:
            raise ValueError(f"League {league_id} not found in repository")

        filepath = self.storage_dir / f"league_{league_id}.json"
        state_dict = self._league_to_dict(ruleset, repository.league_tables(league_id))

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(state_dict, f, indent=2)

        self._update_active_link(filepath)

        logger.info(
            "Saved league %s (%d rosters, %d rounds) to %s",
            league_id, len(state_dict["rosters"]), len(state_dict["rounds"]), filepath,
        )
        return filepath

    def load_league(
        self, league_id: str, repository: Optional[InMemoryRepository] = None
    ) -> Optional[InMemoryRepository]:
        """Load a league into *repository* (a fresh one if not given).

        Returns:
            The populated repository, or None if no readable file exists.
        """
        filepath = self.storage_dir / f"league_{league_id}.json"

        if not filepath.exists():
            logger.warning("League file not found: %s", filepath)
            return None

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                state_dict = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt league file %s: %s", filepath, e)
            return None

        logger.info("Loaded league %s from %s", league_id, filepath)
        return self._dict_to_repository(state_dict, repository or InMemoryRepository())

    def load_active_league(self) -> Optional[InMemoryRepository]:
        """Load the league most recently saved."""
        active_link = self.storage_dir / "active_league.json"

        if not active_link.is_symlink():
            return None

        actual_file = active_link.resolve()
        if not actual_file.exists():
            logger.warning("Active league symlink points to missing file: %s", actual_file)
            return None

        with open(actual_file, "r", encoding="utf-8") as f:
            state_dict = json.load(f)

        logger.info("Loaded active league from %s", actual_file)
        return self._dict_to_repository(state_dict, InMemoryRepository())

    def list_saved_leagues(self) -> List[Dict]:
        """List saved leagues with roster and round counts, sorted by league id."""
        leagues = []

        for filepath in self.storage_dir.glob("league_*.json"):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)

                rounds = data.get("rounds", [])
                leagues.append(
                    {
                        "league_id": data["ruleset"]["league_id"],
                        "rosters": len(data.get("rosters", [])),
                        "rounds": len(rounds),
                        "settled_rounds": sum(1 for r in rounds if r.get("is_completed")),
                    }
                )
            except (json.JSONDecodeError, OSError, KeyError) as e:
                logger.warning("Skipping corrupt league file %s: %s", filepath, e)
                continue

        return sorted(leagues, key=lambda x: x["league_id"])

    def delete_league(self, league_id: str) -> bool:
        """Delete a saved league file. Returns False if not found."""
        filepath = self.storage_dir / f"league_{league_id}.json"

        if not filepath.exists():
            return False

        active_link = self.storage_dir / "active_league.json"
        if active_link.is_symlink() and active_link.resolve() == filepath.resolve():
            active_link.unlink()

        filepath.unlink()
        logger.info("Deleted league %s", league_id)
        return True

    def _league_to_dict(self, ruleset: LeagueRuleset, tables: Dict[str, list]) -> Dict:
        """Convert a league to a JSON-serializable dict."""
        return {
            "ruleset": dataclasses.asdict(ruleset),
            "athletes": [dataclasses.asdict(a) for a in tables["athletes"]],
            "rosters": [
                {
                    "roster_id": r.roster_id,
                    "user_id": r.user_id,
                    "league_id": r.league_id,
                    "name": r.name,
                    "budget_remaining": r.budget_remaining,
                    "version": r.version,
                    "created_at": r.created_at,
                    "triple_captain_used": r.triple_captain_used,
                    "slots": [
                        {
                            "athlete_id": s.athlete_id,
                            "is_starter": s.is_starter,
                            "display_index": s.display_index,
                            "captain_type": s.captain_type,
                        }
                        for s in r.slots
                    ],
                }
                for r in tables["rosters"]
            ],
            "rounds": [dataclasses.asdict(r) for r in tables["rounds"]],
            "matches": [dataclasses.asdict(m) for m in tables["matches"]],
            "statistics": [dataclasses.asdict(s) for s in tables["statistics"]],
            "transfers": [dataclasses.asdict(t) for t in tables["transfers"]],
            "settlements": [dataclasses.asdict(s) for s in tables["settlements"]],
        }

    def _dict_to_repository(self, data: Dict, repository: InMemoryRepository) -> InMemoryRepository:
        """Rebuild league records from dict, rebinding slots to catalog athletes."""
        repository.add_ruleset(LeagueRuleset(**data["ruleset"]))

        for ad in data.get("athletes", []):
            repository.add_athlete(Athlete(**ad))

        for rd in data.get("rosters", []):
            slots = []
            for sd in rd["slots"]:
                athlete = repository.get_athlete(sd["athlete_id"])
                if athlete is None:
                    raise ValueError(
                        f"Roster {rd['roster_id']} references unknown athlete {sd['athlete_id']}"
                    )
                slots.append(
                    RosterSlot(
                        athlete=athlete,
                        is_starter=sd["is_starter"],
                        display_index=sd.get("display_index", 0),
                        captain_type=sd.get("captain_type", CaptainType.NONE.value),
                    )
                )
            repository.add_roster(
                Roster(
                    roster_id=rd["roster_id"],
                    user_id=rd["user_id"],
                    league_id=rd["league_id"],
                    name=rd["name"],
                    budget_remaining=rd["budget_remaining"],
                    slots=slots,
                    version=rd.get("version", 0),
                    created_at=rd.get("created_at", ""),
                    triple_captain_used=rd.get("triple_captain_used", False),
                )
            )

        for rd in data.get("rounds", []):
            repository.add_round(Round(**rd))
        for md in data.get("matches", []):
            repository.add_match(Match(**md))
        for sd in data.get("statistics", []):
            repository.upsert_statistic(MatchStatistic(**sd))
        for td in data.get("transfers", []):
            repository.add_transfer(Transfer(**td))
        for sd in data.get("settlements", []):
            repository.upsert_settlement(RoundSettlementRecord(**sd))

        return repository

    def _update_active_link(self, filepath: Path):
        """Point active_league.json at the most recently saved league."""
        active_link = self.storage_dir / "active_league.json"

        if active_link.exists() or active_link.is_symlink():
            active_link.unlink()

        active_link.symlink_to(filepath.name)
