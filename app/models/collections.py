from app.models.brand import Brand, Group
from app.models.stage import Stage
from app.models.vehicle import Engine, VehicleModel, VehicleType

# Ordem raiz -> folha. A exclusão usa a ordem inversa.
COLLECTION_ORDER = ("brands", "groups", "models", "types", "engines", "stages")

COLLECTIONS = {
    "brands": Brand,
    "groups": Group,
    "models": VehicleModel,
    "types": VehicleType,
    "engines": Engine,
    "stages": Stage,
}

KIND_TO_COLLECTION = {
    "brand": "brands",
    "group": "groups",
    "model": "models",
    "type": "types",
    "engine": "engines",
    "stage": "stages",
}
