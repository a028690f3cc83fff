from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None

from .domain import DEFAULT_JOB_STATUS, SERVICE_CATALOG


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DbConfig:
    host: str
    port: int
    name: str
    user: str
    password: str
    sslmode: str = "disable"


@dataclass(frozen=True)
class StoreConfig:
    backend: str = "postgres"


@dataclass(frozen=True)
class AuthConfig:
    enabled: bool = True
    username: str = "Admin"
    password: str = ""


@dataclass(frozen=True)
class BusinessConfig:
    services: tuple[str, ...] = SERVICE_CATALOG
    default_job_status: str = DEFAULT_JOB_STATUS


@dataclass(frozen=True)
class AppConfig:
    name: str
    log_level: str
    db: DbConfig | None
    store: StoreConfig = field(default_factory=StoreConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    business: BusinessConfig = field(default_factory=BusinessConfig)
    log_file: str | None = None
    secret_key: str = "change-this-secret-key-in-production"


BACKENDS = {"postgres", "memory"}


def load_config(path: str | Path) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p.resolve()}")

    if tomllib is None:
        raise ConfigError("tomllib not available. Use Python 3.11+.")

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to read config TOML: {e}") from e

    return parse_config(data)


def parse_config(data: dict) -> AppConfig:
    try:
        app = data.get("app", {})
        store = data.get("store", {})
        auth = data.get("auth", {})
        business = data.get("business", {})

        backend = str(store.get("backend", "postgres")).lower()
        if backend not in BACKENDS:
            raise ConfigError(f"Unknown store backend: {backend!r} (expected one of {sorted(BACKENDS)})")

        db_cfg = None
        if backend == "postgres":
            db = data["db"]
            db_cfg = DbConfig(
                host=str(db["host"]),
                port=int(db.get("port", 5432)),
                name=str(db["name"]),
                user=str(db["user"]),
                password=str(db["password"]),
                sslmode=str(db.get("sslmode", "disable")),
            )

        auth_cfg = AuthConfig(
            enabled=bool(auth.get("enabled", True)),
            username=str(auth.get("username", "Admin")),
            password=str(auth.get("password", "")),
        )
        if auth_cfg.enabled and not auth_cfg.password:
            raise ConfigError("[auth] password must be set when auth is enabled")

        services = business.get("services")
        return AppConfig(
            name=str(app.get("name", "YellowHut")),
            log_level=str(app.get("log_level", "INFO")),
            log_file=(str(app["log_file"]) if app.get("log_file") else None),
            secret_key=str(app.get("secret_key", "change-this-secret-key-in-production")),
            db=db_cfg,
            store=StoreConfig(backend=backend),
            auth=auth_cfg,
            business=BusinessConfig(
                services=tuple(str(s) for s in services) if services else SERVICE_CATALOG,
                default_job_status=str(business.get("default_job_status", DEFAULT_JOB_STATUS)),
            ),
        )
    except ConfigError:
        raise
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except Exception as e:
        raise ConfigError(f"Invalid config values: {e}") from e
