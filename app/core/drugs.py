"""
Drug catalog

Every dispensable drug is configured here with an explicit kind. The kind decides
the reporting unit and the valid quantity range of a single delivery.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class DrugKind(str, Enum):
    LIQUID = "liquid"
    SOLID = "solid"


@dataclass(frozen=True)
class Drug:
    name: str
    kind: DrugKind

    @property
    def unit(self) -> str:
        """Reporting unit: cc for liquids, unit for tablets"""
        return "cc" if self.kind is DrugKind.LIQUID else "unit"

    @property
    def min_quantity(self) -> int:
        return 1

    @property
    def max_quantity(self) -> Optional[int]:
        # Liquids are dispensed by volume and capped per delivery
        return 1000 if self.kind is DrugKind.LIQUID else None

    def accepts_quantity(self, quantity: int) -> bool:
        if quantity < self.min_quantity:
            return False
        return self.max_quantity is None or quantity <= self.max_quantity


METHADONE_SYRUP = "شربت متادون"
OPIUM_SYRUP = "شربت اپیوم"
METHADONE_TABLET_5 = "قرص متادون 5"
METHADONE_TABLET_30 = "قرص متادون 30"
METHADONE_TABLET_40 = "قرص متادون 40"

DRUGS: Dict[str, Drug] = {
    METHADONE_SYRUP: Drug(METHADONE_SYRUP, DrugKind.LIQUID),
    OPIUM_SYRUP: Drug(OPIUM_SYRUP, DrugKind.LIQUID),
    METHADONE_TABLET_5: Drug(METHADONE_TABLET_5, DrugKind.SOLID),
    METHADONE_TABLET_30: Drug(METHADONE_TABLET_30, DrugKind.SOLID),
    METHADONE_TABLET_40: Drug(METHADONE_TABLET_40, DrugKind.SOLID),
}

VALID_DRUGS: List[str] = list(DRUGS)


def get_drug(name: str) -> Optional[Drug]:
    return DRUGS.get(name)


def is_valid_drug(name) -> bool:
    return isinstance(name, str) and name in DRUGS
