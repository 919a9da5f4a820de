from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from db import database
from main import app
from utils.auth import create_user, ensure_default_admin
from utils.data_import import import_lines

SAMPLE_LINES = [
    "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ ترجمہ: شروع اللہ کے نام سے جو بڑا مہربان نہایت رحم والا ہے<br/>س 001 آ 001",
    "الْحَمْدُ لِلَّهِ رَبِّ الْعَالَمِينَ ترجمہ: سب تعریف اللہ کے لیے ہے جو تمام جہانوں کا رب ہے<br/>س 001 آ 002",
    "اللَّهُ لَا إِلَٰهَ إِلَّا هُوَ الْحَيُّ الْقَيُّومُ ترجمہ: اللہ کے سوا کوئی معبود نہیں، زندہ، سب کا تھامنے والا<br/>س 002 آ 255",
]

ENV_OVERRIDES = (
    "QURANHUB_DATA_PATH",
    "QURANHUB_SESSION_MINUTES",
    "QURANHUB_BUSY_TIMEOUT",
    "QURANHUB_ADMIN_EMAIL",
    "QURANHUB_ADMIN_PASSWORD",
)


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[admin]",
                "username = \"admin\"",
                "email = \"admin@example.com\"",
                "password = \"adminpass\"",
                "",
                "[session]",
                "minutes = 60",
                "secret = \"test-secret\"",
                "",
                "[database]",
                "busy_timeout = 1",
            ]
        ),
        encoding="utf-8",
    )


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    config_dir = tmp_path / ".quranhub"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "quranhub.db")

    database.init_db()
    return config_dir


@pytest.fixture
def sample_lines():
    return list(SAMPLE_LINES)


@pytest.fixture
def conn(app_env):
    with database.get_conn() as connection:
        yield connection


@pytest.fixture
def seeded(conn):
    """Connection with three imported ayahs (1:1, 1:2, 2:255)."""
    import_lines(conn, SAMPLE_LINES)
    return conn


@pytest.fixture
def reader(seeded):
    return create_user(seeded, "reader", "reader@example.com", "secret123")


@pytest.fixture
def ayah_id(seeded):
    def lookup(surah_id: int, ayah_number: int) -> int:
        row = seeded.execute(
            "SELECT id FROM ayahs WHERE surah_id = ? AND ayah_number = ?",
            (surah_id, ayah_number),
        ).fetchone()
        return row["id"]
    return lookup


def _login(client: TestClient, email: str, password: str) -> None:
    response = client.post(
        "/auth/login",
        data={"email": email, "password": password, "next_path": "/study/dashboard"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert "quranhub_session" in response.cookies


@pytest.fixture
def reader_client(reader):
    client = TestClient(app)
    _login(client, "reader@example.com", "secret123")
    return client


@pytest.fixture
def admin_client(seeded):
    ensure_default_admin(seeded)
    client = TestClient(app)
    _login(client, "admin@example.com", "adminpass")
    return client
