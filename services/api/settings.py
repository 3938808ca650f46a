# services/api/settings.py
from pydantic_settings import BaseSettings
from pydantic import ConfigDict, Field
from typing import List, Optional
from pathlib import Path

class Settings(BaseSettings):
    # Audit storage settings
    # "sqlite" uses db_url (any SQLAlchemy URL works); "json" appends to audit_json_path
    storage_backend: str = "sqlite"
    db_url: str = "sqlite:///data/audit.db"
    audit_json_path: str = "data/audit_log.jsonl"

    # Audit append retries (at-least-once). 1 = no retry.
    audit_write_attempts: int = Field(default=3, ge=1, le=10)

    # Source documents: <documents_dir>/<documentId>
    documents_dir: str = "data/documents"

    # Requests without a documentId sign this document.
    # PDF_PATH (optional) points straight at its file, like a single-PDF deployment.
    default_document_id: str = "sample.pdf"
    pdf_path: Optional[str] = None

    # Signed artifacts: <signed_dir>/<documentId>/signed-*.pdf
    signed_dir: str = "data/signed"

    # CORS settings
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    # Request body cap for base64 image uploads (MB)
    max_request_mb: float = Field(default=10.0, gt=0)

    log_level: str = "INFO"

    model_config = ConfigDict(
        # Always load .env from the same folder as this settings.py
        env_file=str(Path(__file__).resolve().parent / ".env"),
        extra="ignore",
    )

    def get_origins_list(self) -> List[str]:
        """Parse comma-separated origins into a list."""
        if not self.allowed_origins:
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def max_request_bytes(self) -> int:
        return int(self.max_request_mb * 1024 * 1024)


_settings_instance = None

def get_settings() -> Settings:
    """Singleton pattern for settings."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
