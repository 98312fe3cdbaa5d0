from unidesk import create_app
from flask.cli import with_appcontext
from flask_migrate import upgrade, migrate, init
import click

app = create_app()

@app.cli.command("db-init")
@with_appcontext
def db_init():
    """Initializes migrations directory"""
    init()

@app.cli.command("db-migrate")
@with_appcontext
@click.option("-m", "--message", default=None, help="Revision message")
def db_migrate(message):
    """Creates a new migration"""
    migrate(message=message)

@app.cli.command("db-upgrade")
@with_appcontext
def db_upgrade():
    """Applies migrations"""
    upgrade()

@app.cli.command("seed")
@with_appcontext
@click.option("--reset", is_flag=True, help="Drop and recreate all tables first")
def seed(reset):
    """Loads roles, an admin account and a small sample faculty"""
    from unidesk.seed import seed_data
    seed_data(reset=reset)
