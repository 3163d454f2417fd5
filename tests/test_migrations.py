# tests/test_migrations.py
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

PROJECT_ROOT = Path(__file__).resolve().parents[1]

TABLES = {"users", "posts", "comments", "likes", "follows", "bookmarks"}


def _alembic_config() -> Config:
    # No ini file, so env.py leaves the test logging setup alone.
    config = Config()
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return config


def test_upgrade_and_downgrade(tmp_path, monkeypatch) -> None:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("ALEMBIC_URL", url)
    config = _alembic_config()
    engine = create_engine(url)

    command.upgrade(config, "head")
    assert TABLES <= set(inspect(engine).get_table_names())

    command.downgrade(config, "base")
    assert not TABLES & set(inspect(engine).get_table_names())
    engine.dispose()
