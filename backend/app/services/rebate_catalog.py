"""
Rebate program catalog and postcode reference tables.

Holds the federal and state incentive definitions, the STC zone rating table
and the postcode band table used to infer a state. Everything here is static
reference data; unknown postcodes resolve to documented defaults.
"""

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple
from app.models.rebate import RebateProgram

DEFAULT_ZONE_RATING = 1.382  # Zone 4, the most common zone
DEFAULT_STATE = "NSW"

# Sample of postcodes per capital; anything else falls back to the default
ZONE_RATINGS: Dict[str, float] = {
    # NSW - Sydney
    **{pc: 1.382 for pc in (
        "2000", "2001", "2010", "2020", "2030", "2040",
        "2050", "2060", "2070", "2080", "2090", "2100",
    )},
    # VIC - Melbourne
    **{pc: 1.382 for pc in ("3000", "3001", "3002", "3003", "3004", "3005", "3006", "3008")},
    # QLD - Brisbane
    **{pc: 1.536 for pc in ("4000", "4001", "4002", "4003", "4004", "4005", "4006")},
    # WA - Perth
    **{pc: 1.536 for pc in ("6000", "6001", "6002", "6003", "6004", "6005")},
    # SA - Adelaide
    **{pc: 1.382 for pc in ("5000", "5001", "5002", "5003", "5004", "5005")},
    # TAS - Hobart
    **{pc: 1.185 for pc in ("7000", "7001", "7002", "7003", "7004")},
    # ACT - Canberra
    **{pc: 1.382 for pc in ("2600", "2601", "2602", "2603", "2604")},
    # NT - Darwin
    **{pc: 1.536 for pc in ("0800", "0801", "0802", "0803", "0804")},
}

# Evaluated top to bottom; ACT sits inside the NSW range so it must come first
POSTCODE_STATE_BANDS: Tuple[Tuple[int, int, str], ...] = (
    (800, 999, "NT"),
    (2600, 2699, "ACT"),
    (1000, 2999, "NSW"),
    (3000, 3999, "VIC"),
    (4000, 4999, "QLD"),
    (5000, 5999, "SA"),
    (6000, 6999, "WA"),
    (7000, 7999, "TAS"),
)

STC_SCHEME_END_YEAR = 2030

REBATE_PROGRAMS: Tuple[RebateProgram, ...] = tuple(
    RebateProgram.model_validate(entry) for entry in (
        {
            "id": "sres_stc",
            "name": "Small-scale Renewable Energy Scheme (STCs)",
            "jurisdiction": "federal",
            "type": "solar",
            "validity": {"start": "2011-01-01", "end": "2030-12-31"},
            "calculation": {
                "formula": "system_size_kW * deeming_period * zone_rating * stc_price",
                "variables": {
                    "deeming_period": "2030 - installation_year",
                    "zone_rating": "lookup_postcode(postcode)",
                    "stc_price": 35,
                },
            },
            "eligibility": {"installer": "CEC-accredited", "system_size_max_kw": 100},
        },
        {
            "id": "vic_solar_homes",
            "name": "VIC Solar Homes Program",
            "jurisdiction": "state",
            "state": "VIC",
            "type": "solar",
            "validity": {"start": "2025-01-01", "end": "2025-12-31"},
            "amount": 1400,
            "eligibility": {
                "owner_occupier": True,
                "income_max": 180000,
                "property_value_max": 3000000,
            },
        },
        {
            "id": "nsw_empowering_homes",
            "name": "NSW Empowering Homes Program",
            "jurisdiction": "state",
            "state": "NSW",
            "type": "solar",
            "validity": {"start": "2024-11-01", "end": "2025-12-31"},
            "amount": 1200,
            "eligibility": {
                "owner_occupier": True,
                "income_max": 180000,
                "property_value_max": 1500000,
            },
        },
        {
            "id": "qld_battery_booster",
            "name": "QLD Battery Booster Program",
            "jurisdiction": "state",
            "state": "QLD",
            "type": "battery",
            "validity": {"start": "2024-07-01", "end": "2025-06-30"},
            "amount": 3000,
            "eligibility": {"owner_occupier": True, "income_max": 180000},
        },
        {
            "id": "sa_home_battery",
            "name": "SA Home Battery Scheme",
            "jurisdiction": "state",
            "state": "SA",
            "type": "battery",
            "validity": {"start": "2024-01-01", "end": "2025-12-31"},
            "amount": 3000,
            "eligibility": {"owner_occupier": True, "income_max": 100000},
        },
        {
            "id": "federal_battery_rebate",
            "name": "Federal Battery Rebate",
            "jurisdiction": "federal",
            "type": "battery",
            "validity": {"start": "2025-07-01", "end": "2030-12-31"},
            "amount": 3300,
            "eligibility": {"installer": "CEC-accredited"},
        },
    )
)


def _parse_postcode(postcode: str) -> Optional[int]:
    text = (postcode or "").strip()
    if not text.isdigit():
        return None
    return int(text)


class RebateCatalog:
    """
    Read-only view over a set of programs and the postcode tables.

    The default instance serves the built-in data; tests and callers can
    build their own with different programs or zone ratings.
    """

    def __init__(
        self,
        programs: Iterable[RebateProgram] = REBATE_PROGRAMS,
        zone_ratings: Optional[Dict[str, float]] = None,
        default_zone_rating: float = DEFAULT_ZONE_RATING
    ):
        self._programs: Tuple[RebateProgram, ...] = tuple(programs)
        self._zone_ratings = dict(ZONE_RATINGS if zone_ratings is None else zone_ratings)
        self.default_zone_rating = default_zone_rating

        ids = [program.id for program in self._programs]
        duplicates = {pid for pid in ids if ids.count(pid) > 1}
        if duplicates:
            raise ValueError(f"Duplicate program ids in catalog: {sorted(duplicates)}")

    def lookup_zone_rating(self, postcode: str) -> float:
        return self._zone_ratings.get((postcode or "").strip(), self.default_zone_rating)

    @staticmethod
    def infer_state_from_postcode(postcode: str) -> str:
        """
        Map a postcode to a state code using numeric bands.

        Bands are checked in POSTCODE_STATE_BANDS order so ACT wins over the
        enclosing NSW range. Non-numeric or unmatched postcodes give NSW.
        """
        code = _parse_postcode(postcode)
        if code is None:
            return DEFAULT_STATE
        for low, high, state in POSTCODE_STATE_BANDS:
            if low <= code <= high:
                return state
        return DEFAULT_STATE

    def list_programs(
        self,
        jurisdiction: Optional[str] = None,
        state: Optional[str] = None
    ) -> List[RebateProgram]:
        programs = list(self._programs)
        if jurisdiction:
            programs = [p for p in programs if p.jurisdiction == jurisdiction]
        if state:
            programs = [p for p in programs if p.state == state.upper()]
        return programs

    def get_program(self, program_id: str) -> Optional[RebateProgram]:
        for program in self._programs:
            if program.id == program_id:
                return program
        return None

    def get_available_programs(self, postcode: str, today: date) -> List[RebateProgram]:
        """Federal programs plus those of the postcode's state that are active today."""
        state = self.infer_state_from_postcode(postcode)
        return [
            program for program in self._programs
            if (program.jurisdiction == "federal" or program.state == state)
            and program.is_active(today)
        ]


_default_catalog = RebateCatalog()


def get_catalog() -> RebateCatalog:
    return _default_catalog


def lookup_zone_rating(postcode: str) -> float:
    return _default_catalog.lookup_zone_rating(postcode)


def infer_state_from_postcode(postcode: str) -> str:
    return _default_catalog.infer_state_from_postcode(postcode)


def list_programs(jurisdiction: Optional[str] = None, state: Optional[str] = None) -> List[RebateProgram]:
    return _default_catalog.list_programs(jurisdiction=jurisdiction, state=state)
