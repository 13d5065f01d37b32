from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    films_endpoint: str = "https://ghibliapi.vercel.app/films"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )


settings = Settings()
