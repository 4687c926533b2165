# init_db.py
from app.db.session import engine
from app.db.base import Base

# IMPORTANTE: Importar todos os modelos aqui para que o SQLAlchemy
# saiba que eles existem antes de criar as tabelas
from app.models.brand import Brand, Group
from app.models.vehicle import VehicleModel, VehicleType, Engine
from app.models.stage import Stage
from app.models.backup import Backup
from app.models.sequence import IdSequence
from app.models.audit import AuditLog


def init_db():
    print("Conectando ao banco de dados...")
    print("Criando tabelas...")

    Base.metadata.create_all(bind=engine)

    print("Tabelas criadas com sucesso!")

if __name__ == "__main__":
    init_db()
