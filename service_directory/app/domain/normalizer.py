"""
Normalization of raw upstream directory records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class UniversityRecord:
    """Structured representation of a university listing."""

    name: str
    country: str
    country_code: Optional[str] = None
    domains: Tuple[str, ...] = ()
    web_pages: Tuple[str, ...] = ()
    state_province: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record to its JSON wire shape."""
        return {
            "name": self.name,
            "country": self.country,
            "countryCode": self.country_code,
            "domains": list(self.domains),
            "webPages": list(self.web_pages),
            "stateProvince": self.state_province,
        }


def transform(raw: Mapping[str, Any]) -> UniversityRecord:
    """Map one upstream record onto ``UniversityRecord``.

    Only two substitutions are made: a missing or empty ``state-province``
    becomes ``None`` and missing ``domains``/``web_pages`` become empty tuples.
    """
    return UniversityRecord(
        name=raw.get("name"),
        country=raw.get("country"),
        country_code=raw.get("alpha_two_code"),
        domains=tuple(raw.get("domains") or ()),
        web_pages=tuple(raw.get("web_pages") or ()),
        state_province=raw.get("state-province") or None,
    )


def extract_distinct_countries(raw_records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Distinct ``country`` values in ascending order.

    Distinctness is by exact string, so "USA" and "usa" are both kept.
    """
    countries = {
        record.get("country")
        for record in raw_records
        if isinstance(record.get("country"), str)
    }
    return sorted(countries)
