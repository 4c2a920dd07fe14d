from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect, text

from jukeboxd.core.config import settings

ALEMBIC_DIR = Path(__file__).resolve().parents[1] / "alembic"


def _alembic_config() -> Config:
    # No ini file, so env.py leaves the test run's logging alone.
    config = Config()
    config.set_main_option("script_location", str(ALEMBIC_DIR))
    return config


def test_single_head():
    script = ScriptDirectory.from_config(_alembic_config())

    assert script.get_heads() == ["0001_baseline"]


def test_upgrade_head_on_fresh_database(tmp_path, monkeypatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setattr(settings, "DATABASE_URL", url)

    command.upgrade(_alembic_config(), "head")

    engine = create_engine(url)
    try:
        tables = set(inspect(engine).get_table_names())
        with engine.connect() as conn:
            version = conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one()
    finally:
        engine.dispose()

    assert {"users", "follows", "ratings", "reviews", "activities", "alembic_version"} <= tables
    assert version == "0001_baseline"
