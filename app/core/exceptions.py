"""
Erros de domínio do catálogo.

Os serviços levantam estas exceções; o handler registrado em app/main.py
converte cada uma em uma resposta JSON com o status correspondente.
"""


class CatalogError(Exception):
    status_code = 400
    code = "CATALOG_ERROR"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict:
        return {"detail": self.message, "error": self.code, **self.extra}


class InvalidRequest(CatalogError):
    """Entrada ausente ou malformada. Nunca repetida automaticamente."""
    status_code = 400
    code = "INVALID_REQUEST"


class InvalidMove(CatalogError):
    """Par (tipo do item, tipo do destino) não suportado."""
    status_code = 400
    code = "INVALID_MOVE"


class NotFound(CatalogError):
    status_code = 404
    code = "NOT_FOUND"


class ParentNotFound(NotFound):
    code = "PARENT_NOT_FOUND"


class EmptyDataset(CatalogError):
    """Nada para salvar no backup. Não é erro: a resposta apenas informa created=False."""
    status_code = 200
    code = "EMPTY_DATASET"

    def __init__(self, message: str = "Nenhum dado para backup (coleção de marcas vazia)", **extra):
        extra.setdefault("created", False)
        super().__init__(message, **extra)


class StoreFailure(CatalogError):
    """Falha de I/O no banco. A mensagem original vai junto para diagnóstico."""
    status_code = 500
    code = "STORE_FAILURE"
