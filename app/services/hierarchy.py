import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequest, NotFound, StoreFailure
from app.models.collections import COLLECTION_ORDER, COLLECTIONS, KIND_TO_COLLECTION
from app.services.identity import IdAllocator

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


def parse_id(value: Any, field: str = "id") -> int:
    """Converte ids vindos da query/body. bool não é id."""
    if value is None or value == "" or isinstance(value, bool):
        raise InvalidRequest(f"O campo '{field}' é obrigatório")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidRequest(f"O campo '{field}' deve ser um número inteiro")


def apply_gains(stage) -> None:
    """gain = tuned - stock quando os dois lados existem; senão fica nulo."""
    if stage.tuned_hp is not None and stage.stock_hp is not None:
        stage.gain_hp = stage.tuned_hp - stage.stock_hp
    else:
        stage.gain_hp = None
    if stage.tuned_nm is not None and stage.stock_nm is not None:
        stage.gain_nm = stage.tuned_nm - stage.stock_nm
    else:
        stage.gain_nm = None


@contextmanager
def transaction(db: Session, operation: str):
    """
    Executa o bloco como uma unidade: commit no fim, rollback em qualquer erro.
    Erros do SQLAlchemy viram StoreFailure com a mensagem original.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"❌ Falha no banco durante {operation}")
        raise StoreFailure(f"Falha no banco durante {operation}: {e}") from e
    except Exception:
        db.rollback()
        raise


class HierarchyStore:
    """
    Acesso às seis coleções do catálogo (brands ... stages) por nome de coleção.

    Nenhum método faz commit: quem chama controla a transação.
    Filtros são por igualdade; listas/tuplas viram IN e o sufixo "__ne" vira !=.
    """

    def __init__(self, db: Session):
        self.db = db
        self.allocator = IdAllocator(db)

    # --- Helpers ---

    @staticmethod
    def collection_for(kind_or_collection: str) -> str:
        name = (kind_or_collection or "").strip().lower()
        if name in COLLECTIONS:
            return name
        if name in KIND_TO_COLLECTION:
            return KIND_TO_COLLECTION[name]
        raise InvalidRequest(f"Coleção desconhecida: {kind_or_collection}")

    def model_for(self, collection: str):
        return COLLECTIONS[self.collection_for(collection)]

    @staticmethod
    def columns(model) -> List[str]:
        return [attr.key for attr in inspect(model).column_attrs]

    @staticmethod
    def to_dict(row) -> Optional[Dict[str, Any]]:
        if row is None:
            return None
        return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}

    def _query(self, collection: str, filters: Dict[str, Any]):
        model = self.model_for(collection)
        query = self.db.query(model)
        for key, value in filters.items():
            negate = key.endswith("__ne")
            field = key[:-4] if negate else key
            column = getattr(model, field)
            if isinstance(value, (list, tuple, set)):
                clause = column.in_(list(value))
                query = query.filter(~clause if negate else clause)
            elif negate:
                query = query.filter(column.is_not(None) if value is None else column != value)
            else:
                query = query.filter(column.is_(None) if value is None else column == value)
        return query

    # --- Leitura ---

    def find_many(self, collection: str, order_by: str = "id", **filters) -> list:
        model = self.model_for(collection)
        return self._query(collection, filters).order_by(getattr(model, order_by), model.id).all()

    def find_one(self, collection: str, **filters):
        model = self.model_for(collection)
        return self._query(collection, filters).order_by(model.id).first()

    def get(self, collection: str, entity_id: int):
        return self.db.get(self.model_for(collection), entity_id)

    def ids(self, collection: str, **filters) -> List[int]:
        model = self.model_for(collection)
        rows = self._query(collection, filters).with_entities(model.id).order_by(model.id).all()
        return [row[0] for row in rows]

    def count(self, collection: str, **filters) -> int:
        return self._query(collection, filters).count()

    def next_id(self, collection: str) -> int:
        return self.allocator.next_id(self.collection_for(collection))

    # --- Escrita ---

    def insert(self, collection: str, values: Dict[str, Any]):
        collection = self.collection_for(collection)
        model = COLLECTIONS[collection]
        allowed = set(self.columns(model))
        data = {k: v for k, v in values.items() if k in allowed}

        if data.get("id") is None:
            data["id"] = self.allocator.next_id(collection)
        else:
            self.allocator.observe(collection, data["id"])

        row = model(**data)
        if collection == "stages":
            apply_gains(row)
        self.db.add(row)
        self.db.flush()
        return row

    def update_one(self, collection: str, entity_id: int, patch: Dict[str, Any]):
        collection = self.collection_for(collection)
        row = self.get(collection, entity_id)
        if row is None:
            raise NotFound(f"Registro {entity_id} não encontrado em {collection}")

        allowed = set(self.columns(COLLECTIONS[collection])) - {"id"}
        for field, value in patch.items():
            if field in allowed:
                setattr(row, field, value)
        if collection == "stages":
            apply_gains(row)
        self.db.flush()
        return row

    def update_many(self, collection: str, patch: Dict[str, Any], **filters) -> int:
        """UPDATE por filtro. Retorna quantas linhas foram alteradas."""
        patch = {k: v for k, v in patch.items() if k != "id"}
        count = self._query(collection, filters).update(patch, synchronize_session="fetch")
        self.db.flush()
        return count

    def bulk_update(self, collection: str, ops: Iterable[Tuple[int, Dict[str, Any]]]) -> int:
        """Aplica vários (id, patch) de uma vez. Ids inexistentes são ignorados."""
        collection = self.collection_for(collection)
        ops = list(ops)
        if not ops:
            return 0

        model = COLLECTIONS[collection]
        allowed = set(self.columns(model)) - {"id"}
        rows = {
            row.id: row
            for row in self.db.query(model).filter(model.id.in_([entity_id for entity_id, _ in ops])).all()
        }

        updated = 0
        for entity_id, patch in ops:
            row = rows.get(entity_id)
            if row is None:
                continue
            for field, value in patch.items():
                if field in allowed:
                    setattr(row, field, value)
            if collection == "stages":
                apply_gains(row)
            updated += 1

        self.db.flush()
        return updated

    def delete_many(self, collection: str, **filters) -> int:
        count = self._query(collection, filters).delete(synchronize_session="fetch")
        self.db.flush()
        return count

    # --- Dataset inteiro (usado pelo backup) ---

    def dump(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            collection: [self.to_dict(row) for row in self.find_many(collection)]
            for collection in COLLECTION_ORDER
        }

    def replace_all(self, data: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
        """
        Substitui as seis coleções pelo conteúdo de `data` (apaga tudo e reinsere).
        Apaga da folha para a raiz e insere da raiz para a folha.
        Os valores são gravados como vieram, inclusive os campos derivados.
        """
        for collection in reversed(COLLECTION_ORDER):
            self.db.query(COLLECTIONS[collection]).delete(synchronize_session=False)
        self.db.flush()
        # Tira da sessão as instâncias antigas para os mesmos ids poderem voltar
        catalog_models = tuple(COLLECTIONS.values())
        for obj in list(self.db.identity_map.values()):
            if isinstance(obj, catalog_models):
                self.db.expunge(obj)

        counts = {}
        for collection in COLLECTION_ORDER:
            model = COLLECTIONS[collection]
            allowed = set(self.columns(model))
            items = data.get(collection) or []
            self.db.add_all([model(**{k: v for k, v in item.items() if k in allowed}) for item in items])
            self.db.flush()
            self.allocator.sync(collection)
            counts[collection] = len(items)
        return counts
