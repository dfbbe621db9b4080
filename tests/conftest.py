import pytest
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from prediction_league.database import get_session
from prediction_league.models import ImportedMatch, Prediction, Tournament, TournamentParticipant, User

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)

@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()

@pytest.fixture(name="league")
def league_fixture(session: Session):
    """
    An active tournament over two finished matchdays and three players.

    Matchday 1: 2-1 and 0-0. Matchday 2: 1-3 and 2-2.
    alice predicts well, bob predicts badly, carol never predicts.
    Journey points: alice 4/4, bob 1/0, carol 1/1 (default 0-0 on draws).
    """
    alice = User(username="alice")
    bob = User(username="bob", avatar="avatar2")
    carol = User(username="carol", avatar="avatar3")
    session.add_all([alice, bob, carol])

    tournament = Tournament(
        name="Friends League",
        competition_id=2021,
        starting_matchday=1,
        ending_matchday=2,
        status="active",
    )
    session.add(tournament)
    session.commit()

    def kickoff(day, hour):
        return datetime(2024, 8, day, hour, 0, tzinfo=timezone.utc)

    matches = [
        ImportedMatch(football_data_match_id=501, competition_id=2021, matchday=1, utc_date=kickoff(10, 15),
                      home_team_name="Arsenal", away_team_name="Wolves", home_score=2, away_score=1,
                      status="FINISHED", finished=True),
        ImportedMatch(football_data_match_id=502, competition_id=2021, matchday=1, utc_date=kickoff(10, 17),
                      home_team_name="Everton", away_team_name="Brighton", home_score=0, away_score=0,
                      status="FINISHED", finished=True),
        ImportedMatch(football_data_match_id=503, competition_id=2021, matchday=2, utc_date=kickoff(17, 15),
                      home_team_name="Fulham", away_team_name="Chelsea", home_score=1, away_score=3,
                      status="FINISHED", finished=True),
        ImportedMatch(football_data_match_id=504, competition_id=2021, matchday=2, utc_date=kickoff(17, 17),
                      home_team_name="Leeds", away_team_name="Burnley", home_score=2, away_score=2,
                      status="FINISHED", finished=True),
    ]
    session.add_all(matches)
    session.commit()

    for user in (alice, bob, carol):
        session.add(TournamentParticipant(tournament_id=tournament.id, user_id=user.id))

    guesses = {
        alice.id: [(2, 1), (1, 1), (0, 2), (2, 2)],
        bob.id: [(1, 0), (2, 1), (1, 0), (0, 1)],
    }
    for user_id, scores in guesses.items():
        for match, (home, away) in zip(matches, scores):
            session.add(Prediction(
                user_id=user_id,
                tournament_id=tournament.id,
                match_id=match.id,
                predicted_home_score=home,
                predicted_away_score=away,
            ))
    session.commit()

    return {
        "tournament": tournament,
        "alice": alice,
        "bob": bob,
        "carol": carol,
        "matches": matches,
    }
