from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    overpass_endpoints: list[str] = [
        "https://overpass-api.de/api/interpreter",
        "https://overpass.kumi.systems/api/interpreter",
        "https://maps.mail.ru/osm/tools/overpass/api/interpreter",
    ]
    proxy_path: str = "/api/places/overpass/nearby"
    user_agent: str = "overpass-proxy/0.1.0"

    attempt_timeout_seconds: float = 25.0
    max_attempts: int = 3
    health_window_seconds: float = 300.0
    selection_strategy: str = "random"

    max_query_length: int = 10_000
    max_statements: int = 50
    max_around_radius_m: int = 50_000

    cache_max_age_seconds: int = 3600
    stale_while_revalidate_seconds: int = 7200
    retry_after_seconds: int = 60

    model_config = {"env_file": ".env"}


settings = Settings()
