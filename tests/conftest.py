from pathlib import Path
import sys
import os

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Keep any accidental app creation away from the MySQL default.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from rankpoll import create_app
from rankpoll.extensions import db
from rankpoll.models import Ballot, BallotRanking, Poll, PollOption
from rankpoll.models.poll import POLL_STATUS_PUBLISHED


@pytest.fixture()
def app(tmp_path: Path):
    db_file = tmp_path / "test.sqlite3"
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_file}",
            "SQLALCHEMY_ENGINE_OPTIONS": {},
        }
    )

    with app.app_context():
        driver = db.engine.url.drivername
        if driver != "sqlite":
            raise RuntimeError(
                f"Test database must be SQLite, got '{driver}'. Refusing to run destructive test setup."
            )
        db.drop_all()
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def db_session(app):
    with app.app_context():
        yield db.session


@pytest.fixture()
def make_poll(db_session):
    def _make_poll(option_texts, **kwargs):
        kwargs.setdefault("title", "Favourite fruit")
        kwargs.setdefault("status", POLL_STATUS_PUBLISHED)
        poll = Poll(**kwargs)
        db_session.add(poll)
        db_session.flush()

        options = [
            PollOption(poll_id=poll.id, text=text, position=index)
            for index, text in enumerate(option_texts, start=1)
        ]
        db_session.add_all(options)
        db_session.commit()
        return poll, options

    return _make_poll


@pytest.fixture()
def add_ballot(db_session):
    def _add_ballot(poll, ranked_options, user_id=None):
        ballot = Ballot(poll_id=poll.id, user_id=user_id)
        ballot.rankings = [
            BallotRanking(option_id=option.id, rank=rank)
            for rank, option in enumerate(ranked_options, start=1)
        ]
        db_session.add(ballot)
        db_session.commit()
        return ballot

    return _add_ballot
