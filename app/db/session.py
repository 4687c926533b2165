from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings

# SQLite (dev): rotas síncronas rodam no threadpool do FastAPI
connect_args = {}
if settings.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI,
    connect_args=connect_args,
    pool_pre_ping=True, # Verifica se a conexão está viva antes de usar
    echo=False # Mude para True se quiser ver os comandos SQL no terminal
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
