"""Application configuration with environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # NDA documents
    NDA_TEMPLATE_DIR: str = "/var/lib/casework/centralRepository/public/finalNda"
    NDA_PREVIEW_DIR: str = "/var/lib/casework/centralRepository/protected/nda-previews"
    NDA_SIGNED_DIR: str = "/var/lib/casework/centralRepository/protected/signed-nda"
    NDA_SIGNATURES_DIR: str = "/var/lib/casework/centralRepository/protected/signatures"
    NDA_COUNTER_SIGNATURE_FILE: str = "counter-signature.png"

    # NDA preview cache
    NDA_PREVIEW_TTL_SECONDS: int = 600  # 10 minutes
    NDA_PREVIEW_SWEEP_INTERVAL_SECONDS: int = 60

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def counter_signature_path(self) -> Path:
        return Path(self.NDA_SIGNATURES_DIR) / self.NDA_COUNTER_SIGNATURE_FILE


settings = Settings()
