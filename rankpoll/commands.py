import click

from rankpoll.extensions import db
from rankpoll.services.results import (
    finalize_expired_polls,
    get_or_compute_poll_result,
    recompute_poll_result,
    serialize_poll_result,
)


def register_commands(app):
    @app.cli.command("finalize-polls")
    def finalize_polls():
        """Close every poll whose end time has passed and freeze its result."""
        try:
            polls = finalize_expired_polls()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        click.echo(f"Finalized {len(polls)} poll(s).")

    @app.cli.command("recompute-result")
    @click.argument("poll_id", type=int)
    def recompute_result(poll_id):
        """Recount a poll and replace its stored result."""
        try:
            result = recompute_poll_result(poll_id)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        click.echo(
            f"Poll {poll_id}: winner={result.winner_option_id} "
            f"rounds={result.total_rounds} ballots={result.total_ballots}"
        )

    @app.cli.command("show-result")
    @click.argument("poll_id", type=int)
    def show_result(poll_id):
        """Print the stored result for a poll, computing it on first use."""
        try:
            data = serialize_poll_result(get_or_compute_poll_result(poll_id))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        click.echo(
            f"Poll {poll_id}: {data['total_ballots']} ballot(s), "
            f"{data['total_rounds']} round(s), winner={data['winner_option_id']}"
        )
        for value in data["values"]:
            eliminated = value["eliminated_in_round"]
            status = f"eliminated in round {eliminated}" if eliminated else "active"
            click.echo(
                f"  round {value['round_number']}: {value['option_text']} "
                f"{value['votes']} vote(s), {status}"
            )
