"""Run the trophy sweep once, outside the HTTP cron endpoint."""
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session, select
from prediction_league.database import engine, create_db_and_tables
from prediction_league.logging_config import setup_logging
from prediction_league.models import Tournament
from prediction_league.services.bonus import generate_bonus_matches
from prediction_league.services.trophies import check_all_trophies


def check_trophies(with_bonus: bool = False):
    """Create missing bonus matches (optional), then award new trophies."""
    setup_logging()
    create_db_and_tables()

    with Session(engine) as session:
        if with_bonus:
            tournaments = session.exec(select(Tournament).where(Tournament.status == "active")).all()
            for tournament in tournaments:
                generate_bonus_matches(session, tournament.id)

        summary = check_all_trophies(session, datetime.now(timezone.utc))
        print(
            f"Checked {summary['tournaments_checked']} tournaments: "
            f"{summary['trophies_awarded']} trophies awarded, {summary['errors']} errors."
        )


if __name__ == "__main__":
    check_trophies(with_bonus="--bonus" in sys.argv)
