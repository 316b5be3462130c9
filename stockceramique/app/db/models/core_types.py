import enum


class MovementType(str, enum.Enum):
    inbound = "entree"
    outbound = "sortie"


class MovementReferenceType(str, enum.Enum):
    reception = "reception"
    outbound = "sortie"


class PurchaseRequestStatus(str, enum.Enum):
    pending = "en_attente"
    approved = "approuve"
    refused = "refuse"
    ordered = "commande"


class PurchaseRequestKind(str, enum.Enum):
    single = "single"
    multi = "multi"


def enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    # persiste les valeurs ("entree") et non les noms ("inbound")
    return [member.value for member in enum_cls]
