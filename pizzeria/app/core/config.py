from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings


DEFAULT_API_URL = "https://fermento-backend--fermento-pizzeria.europe-west4.hosted.app/api"


class Features(BaseModel):
    real_time_updates: bool = True
    email_notifications: bool = False
    analytics: bool = False


class Environment(BaseModel):
    """A named deployment target for the reservations service."""

    name: str
    api_url: str
    is_production: bool = False
    features: Features = Features()


ENVIRONMENTS: dict[str, Environment] = {
    "development": Environment(
        name="Development",
        api_url=DEFAULT_API_URL,
        is_production=False,
        features=Features(real_time_updates=True, email_notifications=False, analytics=False),
    ),
    "production": Environment(
        name="Production",
        api_url=DEFAULT_API_URL,
        is_production=True,
        features=Features(real_time_updates=True, email_notifications=True, analytics=True),
    ),
    "staging": Environment(
        name="Staging",
        api_url=DEFAULT_API_URL,
        is_production=False,
        features=Features(real_time_updates=True, email_notifications=True, analytics=False),
    ),
}


class Settings(BaseSettings):
    """Application settings sourced from environment variables."""

    APP_ENV: str = "development"
    API_URL: str | None = None  # overrides the environment's api_url when set

    API_PREFIX: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    HEALTH_POLL_SECONDS: float = 30.0
    REQUEST_TIMEOUT_SECONDS: float | None = None

    INITIALIZE_SHIFTS_ON_STARTUP: bool = False
    SHIFT_INITIALIZATION_DAYS: int = 30

    LIVE_FEED_MAX_DATES: int = 8
    MODAL_IDLE_SECONDS: float = 1800.0
    MODAL_MAX_SESSIONS: int = 500

    model_config = ConfigDict(env_file=".env", extra="ignore")


def resolve_environment(name: str | None, api_url: str | None = None) -> Environment:
    """Pick the named environment (development when unknown) and apply the URL override."""
    base = ENVIRONMENTS.get(name or "development", ENVIRONMENTS["development"])
    if api_url:
        return base.model_copy(update={"api_url": api_url})
    return base


settings = Settings()
