from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SOCKS5GATE_")

    verbose: int = 0
    timeout: int = 1000  # milliseconds
    strict_methods: bool = False


settings = Settings()
