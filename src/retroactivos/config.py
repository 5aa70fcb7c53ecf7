from pydantic_settings import BaseSettings, SettingsConfigDict

from .periods import PayrollCycle


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="RETRO_", extra="ignore")

    app_name: str = "Calculadora de retroactivos"
    debug: bool = False
    log_level: str = "INFO"

    # Bulk import
    max_batch_rows: int = 10_000
    default_cycle: PayrollCycle = PayrollCycle.MONTHLY
    batch_workers: int = 1


settings = Settings()
