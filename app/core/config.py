from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # --- GERAIS ---
    PROJECT_NAME: str = "Tuning Catalog API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 120
    LOG_LEVEL: str = "INFO"

    # --- BANCO DE DADOS ---
    SQLALCHEMY_DATABASE_URI: str

    # --- URLs ---
    FRONTEND_URL: str = "http://localhost:3000"

    # --- BACKUPS ---
    # Teto de snapshots mantidos (manual, auto e pre-restore na mesma fila)
    BACKUP_RETENTION_LIMIT: int = 30
    BACKUP_LIST_LIMIT: int = 50
    # Snapshot automático antes de atualizações em massa de preço
    AUTO_BACKUP_ON_BULK_UPDATE: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
