from pathlib import Path
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    return Path.home() / ".till"


class Settings(BaseSettings):
    data_dir: Path = _default_data_dir()
    database_file: str = "till.db"
    seed_database: Optional[Path] = None
    db_busy_timeout: float = 15.0

    archive_dir: Optional[Path] = None
    documents_dir: Path = Path.home() / "Documents"
    business_name: str = "Till"

    printer_name: str = "XP-80C"
    print_timeout: float = 5.0

    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[SecretStr] = None
    smtp_use_tls: bool = True
    mail_sender: Optional[str] = None
    mail_recipient: Optional[str] = None

    api_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    service_name: str = "Till Inventory"
    service_type: str = "_http._tcp.local."

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_prefix="TILL_", case_sensitive=False)

    @property
    def database_path(self) -> Path:
        return self.data_dir / self.database_file

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.database_path}"

    @property
    def reports_dir(self) -> Path:
        return self.archive_dir or self.data_dir / "reports"

    @property
    def mail_configured(self) -> bool:
        return all((self.smtp_host, self.smtp_username, self.mail_sender, self.mail_recipient))


settings = Settings()
