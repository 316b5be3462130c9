"""
Exceptions métier de StockCéramique.

Levées par les services, traduites en réponses HTTP par
stockceramique.app.api.errors.
"""


class StockCeramiqueError(Exception):
    """Classe de base pour les erreurs métier."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(StockCeramiqueError):
    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} non trouvé")


class InsufficientStockError(StockCeramiqueError):
    def __init__(self, article_id: int, requested: int, available: int):
        self.article_id = article_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Stock insuffisant pour l'article {article_id} "
            f"(demandé={requested}, disponible={available})"
        )


class InvalidInputError(StockCeramiqueError):
    pass


class InvalidStatusTransitionError(StockCeramiqueError):
    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Transition de statut invalide : {current} -> {target}")


class ConflictError(StockCeramiqueError):
    """Opération incompatible avec l'état courant (doublon, référence existante)."""


class InconsistentStateError(StockCeramiqueError):
    """Stock et journal divergents : à réconcilier manuellement."""
