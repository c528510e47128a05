"""Configuration for linkaudit"""

from pathlib import Path

from dynaconf import Dynaconf, Validator

# Validators for linkaudit settings.
_validators = [
    Validator("deployment.canary", is_type_of=bool),
    Validator("logging.format", is_in=["mozlog", "pretty"]),
    Validator("logging.level", is_in=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]),
    Validator("logging.can_propagate", is_type_of=bool),
    Validator("metrics.dev_logger", is_type_of=bool),
    Validator("metrics.host", is_type_of=str),
    Validator("metrics.port", gte=0, is_type_of=int),
    Validator("sentry.env", is_in=["prod", "stage", "dev"]),
    Validator("sentry.mode", is_in=["disabled", "release", "debug"]),
    Validator("sentry.traces_sample_rate", gte=0, lte=1),
    Validator(
        "sentry.dsn",
        is_type_of=str,
        must_exist=True,
        when=Validator("sentry.mode", is_in=["release", "debug"]),
    ),
    Validator("analysis.backend", is_in=["http", "fake"]),
    Validator("analysis.url", "analysis.endpoint", is_type_of=str, must_exist=True),
    Validator("analysis.api_key", is_type_of=str),
    Validator("analysis.connect_timeout_sec", is_type_of=float, gt=0),
    # The analysis service does its own link checking with per-link timeouts, but
    # we should never hang on it forever.
    Validator("analysis.request_timeout_sec", is_type_of=float, gt=0, lte=120.0),
    Validator("processor.inter_job_delay_sec", is_type_of=float, gte=0),
    Validator("processor.poll_interval_sec", is_type_of=float, gt=0),
    Validator("processor.recently_completed_max", is_type_of=int, gte=1),
    Validator("entries.storage", is_in=["none", "file", "redis"]),
    Validator("entries.storage_key", is_type_of=str, must_exist=True),
    Validator("entries.file_path", is_type_of=str),
    Validator("entries.persist_interval_sec", is_type_of=float, gt=0),
    # The Redis server URL is required when entries are persisted to Redis.
    Validator(
        "redis.server",
        is_type_of=str,
        must_exist=True,
        when=Validator("entries.storage", must_exist=True, eq="redis"),
    ),
    Validator("web.api.v1.max_urls_per_submission", is_type_of=int, gte=1, lte=1000),
    Validator("web.api.v1.page_size_default", is_type_of=int, gte=1),
    Validator("web.api.v1.page_size_max", is_type_of=int, gte=1),
]

# `root_path` = The package directory, so that the settings files resolve from any cwd.
# `envvar_prefix` = Export envvars with `export LINKAUDIT_FOO=bar`.
# `settings_files` = Load these files in the order.
# `environments` = Enable layered environments such as `development`, `production`, `testing` etc.
# `env_switcher` = Switch environments by `export LINKAUDIT_ENV=production`.
# Default: `development`.
# `merge_enabled` = Environment tables extend the default tables instead of replacing them.
# `validators` = Define validators for linkaudit settings.

settings = Dynaconf(
    root_path=str(Path(__file__).parent),
    envvar_prefix="LINKAUDIT",
    settings_files=[
        "configs/default.toml",
        "configs/development.toml",
        "configs/production.toml",
        "configs/testing.toml",
    ],
    environments=True,
    env_switcher="LINKAUDIT_ENV",
    merge_enabled=True,
    validators=_validators,
)
