#!/usr/bin/env python3
"""Check the environment variables a deployment needs.

Reads the same sources as the app (process env + .env) and prints which
backing services are configured. Secrets are masked.

Run:
  python -m scripts.check_env

Exit code 1 when a required variable is missing.
"""

from dataclasses import dataclass
import os
import sys

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.settings import Settings, get_settings  # noqa: E402


@dataclass(frozen=True)
class EnvCheck:
    name: str
    description: str
    value: str
    required: bool = False
    secret: bool = True


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}...{value[-4:]}"


def collect_checks(settings: Settings) -> list[EnvCheck]:
    return [
        EnvCheck(
            "DATABASE_URL / POSTGRES_URL",
            "PostgreSQL connection string",
            settings.database_url,
            required=True,
        ),
        EnvCheck("UPSTASH_REDIS_REST_URL", "Upstash Redis endpoint (primary cache)", settings.upstash_redis_rest_url, secret=False),
        EnvCheck("UPSTASH_REDIS_REST_TOKEN", "Upstash Redis token", settings.upstash_redis_rest_token),
        EnvCheck("REDIS_URL", "Redis URL (fallback cache)", settings.redis_url),
        EnvCheck("MONGODB_URI", "MongoDB URI (not used by the API)", settings.mongodb_uri),
        EnvCheck("NODE_ENV", "Runtime environment", settings.environment, secret=False),
        EnvCheck("FRONTEND_URL", "Allowed CORS origins", ",".join(settings.cors_origins), secret=False),
    ]


def report(checks: list[EnvCheck]) -> list[str]:
    """Print one line per check and return the names of missing required vars."""
    missing: list[str] = []
    for check in checks:
        if check.value:
            shown = _mask(check.value) if check.secret else check.value
            print(f"[ok]      {check.name}: {shown}")
        elif check.required:
            missing.append(check.name)
            print(f"[missing] {check.name}: {check.description}")
        else:
            print(f"[unset]   {check.name}: {check.description} (optional)")
    return missing


def main() -> int:
    settings = get_settings()
    missing = report(collect_checks(settings))
    if settings.upstash_redis_rest_url and not settings.upstash_redis_rest_token:
        print("[warning] UPSTASH_REDIS_REST_URL is set without UPSTASH_REDIS_REST_TOKEN; primary cache disabled")
    if missing:
        print(f"Missing required variables: {', '.join(missing)}")
        return 1
    print("Environment looks good")
    return 0


if __name__ == "__main__":
    sys.exit(main())
