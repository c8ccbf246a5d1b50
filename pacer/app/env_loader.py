"""Load environment variables early for the FastAPI app.

Selects the .env file based on ENV before any other imports run, so dependent
modules see configured settings. In staging and prod the variables are
injected by the deployment, so no .env file is loaded.
"""

import os
import sys
from typing import Literal
from dotenv import load_dotenv

EnvironmentName = Literal["dev", "staging", "prod"]

# Required environment variables that must be set for the app to run.
# If any are missing, the app will fail to start with a clear error message.
REQUIRED_ENV_VARS = [
    "DATABASE_URL",
]

# Optional environment variables, and what the app does without them.
OPTIONAL_ENV_VARS = {
    "PACER_API_KEY": "API key auth is disabled",
    "PACER_NOTIFY_WEBHOOK_URL": "run notifications are kept in memory only",
    "PACER_GPSD_HOST": "locations must be pushed by the client",
}


def validate_required_env_vars() -> None:
    """Validate that all required environment variables are set.

    Raises:
        SystemExit: If any required environment variables are missing.
    """
    missing = [var for var in REQUIRED_ENV_VARS if not os.getenv(var)]
    if missing:
        print(
            f"ERROR: Missing required environment variables: {', '.join(missing)}",
            file=sys.stderr,
        )
        print(
            "Please set these variables in your .env file or environment.",
            file=sys.stderr,
        )
        sys.exit(1)


def report_unset_optional_env_vars() -> list[str]:
    """Print a note for each optional variable that is unset, and return them."""
    unset = [var for var in OPTIONAL_ENV_VARS if not os.getenv(var)]
    for var in unset:
        print(f"{var} not set: {OPTIONAL_ENV_VARS[var]}", file=sys.stderr)
    return unset


# Load env vars before any app code runs.
env = os.getenv("ENV", "dev")
if env in ("staging", "prod"):
    # The deployment injects the variables; there is no env file to load.
    print(f"Running in {env} environment (env vars from deployment)")
elif env == "dev":
    print("Loading environment variables from .env.dev")
    load_dotenv(".env.dev", verbose=True)
else:
    raise ValueError(f"Invalid ENV value: {env}. Must be 'dev', 'staging', or 'prod'.")

# Validate required env vars after loading.
validate_required_env_vars()
report_unset_optional_env_vars()


def get_current_environment() -> EnvironmentName:
    """Get the current environment (dev, staging, or prod)."""
    env = os.getenv("ENV", "dev")
    if env == "dev":
        return "dev"
    if env == "staging":
        return "staging"
    if env == "prod":
        return "prod"
    raise ValueError(f"Invalid ENV value: {env}. Must be 'dev', 'staging', or 'prod'.")
