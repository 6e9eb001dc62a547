from flask import Flask

from rankpoll.commands import register_commands
from rankpoll.config import Config
from rankpoll.extensions import db, migrate


def create_app(test_config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if test_config:
        app.config.from_mapping(test_config)

    app.logger.setLevel(app.config["RANKPOLL_LOG_LEVEL"])

    db.init_app(app)
    migrate.init_app(app, db)

    # Register models on the metadata before any create_all/migrate call.
    from rankpoll import models  # noqa: F401

    register_commands(app)
    return app


__all__ = ["db", "migrate", "create_app"]
