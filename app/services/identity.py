import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.collections import COLLECTIONS
from app.models.sequence import IdSequence

logger = logging.getLogger(__name__)

class IdAllocator:
    """
    Emite ids inteiros crescentes por coleção.

    O contador fica em id_sequences e é lido com SELECT ... FOR UPDATE dentro
    da transação de quem chamou, então duas requisições nunca recebem o mesmo
    id. Ids apagados não são reaproveitados.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_id(self, collection: str) -> int:
        seq = self._locked_sequence(collection)
        seq.value += 1
        self.db.flush()
        return seq.value

    def observe(self, collection: str, used_id: int):
        """Garante que um id informado explicitamente não será emitido depois."""
        seq = self._locked_sequence(collection)
        if used_id > seq.value:
            seq.value = used_id
            self.db.flush()

    def sync(self, collection: str) -> int:
        """Sobe o contador até o maior id da tabela (usado após restore). Nunca desce."""
        seq = self._locked_sequence(collection)
        current_max = self._max_id(collection)
        if current_max > seq.value:
            logger.info(f"🔢 Sequência de {collection}: {seq.value} -> {current_max}")
            seq.value = current_max
            self.db.flush()
        return seq.value

    def _max_id(self, collection: str) -> int:
        model = COLLECTIONS[collection]
        return self.db.query(func.max(model.id)).scalar() or 0

    def _locked_sequence(self, collection: str) -> IdSequence:
        seq = (
            self.db.query(IdSequence)
            .filter(IdSequence.collection == collection)
            .with_for_update()
            .first()
        )
        if seq is None:
            # Primeira vez: parte do maior id já existente
            seq = IdSequence(collection=collection, value=self._max_id(collection))
            self.db.add(seq)
            self.db.flush()
        return seq
