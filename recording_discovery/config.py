from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Google Drive settings
    DRIVE_API_BASE_URL: str = "https://www.googleapis.com/drive/v3"
    GOOGLE_DRIVE_ACCESS_TOKEN: str | None = None
    DRIVE_ROOT_FOLDER_ID: str | None = None
    DRIVE_REQUEST_TIMEOUT: float = 30.0

    # =================================================================
    # SCAN SETTINGS
    # =================================================================
    SCAN_MAX_DEPTH: int = 5
    SCAN_MIN_FILE_SIZE: int = 100 * 1024  # 100KB
    SCAN_EXCLUDE_FOLDERS: list[str] = []
    SCAN_INCLUDE_PATTERNS: list[str] = []
    SCAN_PAGE_SIZE: int = 100
    SCAN_PAGE_DELAY_SECONDS: float = 0.1

    # =================================================================
    # RETRY / CACHE SETTINGS
    # =================================================================
    RETRY_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 10.0
    RETRY_BACKOFF_MULTIPLIER: float = 1.5
    RETRY_STATUS_CODES: list[int] = [429, 500, 502, 503, 504, 529]
    FOLDER_CACHE_TTL_SECONDS: float = 300.0  # 5 minutes

    # =================================================================
    # MATCHING SETTINGS
    # =================================================================
    SIMILARITY_THRESHOLD: float = 0.7
    SESSION_CONFIDENCE_FLOOR: int = 20

    # =================================================================
    # DOMAIN SCAN SETTINGS
    # =================================================================
    INSTITUTION_NAME: str = "Ivylevel"
    DOMAIN_SCAN_MAX_DEPTH: int = 7
    DOMAIN_EXCLUDE_FOLDERS: list[str] = [
        "Processed",
        "Archive",
        "Trash",
        "Old",
        "Backup",
        "Test",
        "temp",
        "tmp",
    ]
    KNOWN_COACHES: list[str] = ["Jenny", "Alan", "Juli", "Andrew"]

    # Optional override for the packaged renewal-student table
    RENEWAL_TABLE_PATH: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def get_retry_config(self) -> dict:
        """Retry policy keyword arguments for the remote accessor."""
        return {
            "max_retries": self.RETRY_MAX_ATTEMPTS,
            "base_delay": self.RETRY_BASE_DELAY,
            "max_delay": self.RETRY_MAX_DELAY,
            "backoff_multiplier": self.RETRY_BACKOFF_MULTIPLIER,
            "transient_status_codes": frozenset(self.RETRY_STATUS_CODES),
        }

    def get_scan_config(self) -> dict:
        """Scan option keyword arguments for the generic scanner."""
        return {
            "min_file_size": self.SCAN_MIN_FILE_SIZE,
            "exclude_folders": tuple(self.SCAN_EXCLUDE_FOLDERS),
            "include_patterns": tuple(self.SCAN_INCLUDE_PATTERNS),
            "page_size": self.SCAN_PAGE_SIZE,
            "page_delay": self.SCAN_PAGE_DELAY_SECONDS,
        }


settings = Settings()
