"""Enumerations that select rows of the assumption table."""

from __future__ import annotations

from enum import Enum


class LocationType(str, Enum):
    """Site remoteness; drives waste fractions and footing width."""

    URBAN = "urban"
    PERI_URBAN = "peri-urban"
    RURAL = "rural"


class BuildQuality(str, Enum):
    STANDARD = "standard"
    ECONOMY = "economy"


class ConcreteProfile(str, Enum):
    STRUCTURAL = "structural"
    ECONOMY = "economy"


class MortarProfile(str, Enum):
    """Mortar and plaster mix strength."""

    STANDARD = "standard"
    ECONOMY = "economy"


class CementType(str, Enum):
    """Cement strength class sold in 50kg bags."""

    CEMENT_325 = "cement_325"
    CEMENT_425 = "cement_425"

    @property
    def concrete_profile(self) -> ConcreteProfile:
        if self is CementType.CEMENT_425:
            return ConcreteProfile.STRUCTURAL
        return ConcreteProfile.ECONOMY

    @property
    def mortar_profile(self) -> MortarProfile:
        if self is CementType.CEMENT_425:
            return MortarProfile.STANDARD
        return MortarProfile.ECONOMY


class MasonryUnitType(str, Enum):
    """Walling units; each has its own units-per-m2 rate and price."""

    COMMON = "common"
    FARM = "farm"
    SEMI_COMMON = "semi_common"
    BLOCKS_6INCH = "blocks_6inch"
    BLOCKS_8INCH = "blocks_8inch"
    FACE_BRICK = "face_brick"


class ProjectScope(str, Enum):
    FULL_HOUSE = "full_house"
    SUBSTRUCTURE = "substructure"
    SUPERSTRUCTURE = "superstructure"
    ROOFING = "roofing"
    FINISHING = "finishing"
    EXTERIOR = "exterior"


class Phase(str, Enum):
    """The five sequential construction phases, in build order."""

    SUBSTRUCTURE = "substructure"
    SUPERSTRUCTURE = "superstructure"
    ROOFING = "roofing"
    FINISHING = "finishing"
    EXTERIOR = "exterior"

    @property
    def label(self) -> str:
        return PHASE_LABELS[self]


PHASE_ORDER: tuple[Phase, ...] = (
    Phase.SUBSTRUCTURE,
    Phase.SUPERSTRUCTURE,
    Phase.ROOFING,
    Phase.FINISHING,
    Phase.EXTERIOR,
)

PHASE_LABELS: dict[Phase, str] = {
    Phase.SUBSTRUCTURE: "Site Preparation & Foundation",
    Phase.SUPERSTRUCTURE: "Structural Walls & Frame",
    Phase.ROOFING: "Roofing",
    Phase.FINISHING: "Interior & Finishing",
    Phase.EXTERIOR: "External Work",
}

# Category used for labor line items; not a construction phase.
LABOR_CATEGORY = "labor"
