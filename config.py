import tomllib
import shutil
import re
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".quranhub"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"
PROJECT_DATA_DIR = Path(__file__).parent / "data"

def load_config() -> Dict[str, Any]:
    """Load config from ~/.quranhub/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., QURANHUB_DATA_PATH env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    app_cfg = config.get("app", {})
    config["app"] = {
        "site_name": app_cfg.get("site_name", "Quran Study Hub"),
    }
    admin_cfg = config.get("admin", {})
    config["admin"] = {
        "username": admin_cfg.get("username", "admin"),
        "email": os.getenv("QURANHUB_ADMIN_EMAIL", admin_cfg.get("email", "admin@example.com")),
        "password": os.getenv("QURANHUB_ADMIN_PASSWORD", admin_cfg.get("password", "adminpassword")),
    }
    session_cfg = config.get("session", {})
    config["session"] = {
        "minutes": int(os.getenv("QURANHUB_SESSION_MINUTES", session_cfg.get("minutes", 1440))),
        "secret": session_cfg.get("secret", ""),
    }
    database_cfg = config.get("database", {})
    config["database"] = {
        "busy_timeout": float(os.getenv("QURANHUB_BUSY_TIMEOUT", database_cfg.get("busy_timeout", 5))),
    }
    import_cfg = config.get("import", {})
    data_path = Path(os.getenv("QURANHUB_DATA_PATH", import_cfg.get("data_path", "data/data.AM")))
    if not data_path.is_absolute():
        data_path = PROJECT_DATA_DIR.parent / data_path
    config["import"] = {
        "data_path": str(data_path),
        "version_name": import_cfg.get("version_name", "Imported Urdu"),
        "language": import_cfg.get("language", "ur"),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('session', 'minutes')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value


def set_session_secret(secret: str) -> None:
    """Persist the session signing secret into config.toml."""
    load_config()
    text = CONFIG_PATH.read_text(encoding="utf-8")
    if not re.search(r"^\[session\]", text, flags=re.MULTILINE):
        text = text.rstrip() + f'\n\n[session]\nsecret = "{secret}"\n'
        CONFIG_PATH.write_text(text, encoding="utf-8")
        return

    def update_section(match: re.Match) -> str:
        section = match.group(1)
        rest = match.group(2)
        if re.search(r"^secret\s*=", section, flags=re.MULTILINE):
            section = re.sub(
                r"^secret\s*=.*$",
                f'secret = "{secret}"',
                section,
                flags=re.MULTILINE,
            )
        else:
            lines = section.rstrip().splitlines()
            insert_at = 1 if lines else 0
            lines.insert(insert_at, f'secret = "{secret}"')
            section = "\n".join(lines) + "\n\n"
        return section + rest

    text = re.sub(r"(?ms)(^\[session\].*?)(^\[|\Z)", update_section, text, count=1)
    CONFIG_PATH.write_text(text, encoding="utf-8")
