"""Data models for CVE candidate search."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any


@dataclass(frozen=True)
class VendorIdentity:
    """Vendor of a component as recorded in the component catalogue."""

    short_name: Optional[str] = None
    full_name: Optional[str] = None

    def is_set(self) -> bool:
        """Whether at least one of the names is present (empty strings count)."""
        return self.short_name is not None or self.full_name is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "shortname": self.short_name,
            "fullname": self.full_name
        }


@dataclass(frozen=True)
class ComponentRecord:
    """A released software component to look up in cve-search."""

    name: str
    version: Optional[str] = None
    vendor: Optional[VendorIdentity] = None
    cpe_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComponentRecord':
        """Create ComponentRecord from a JSON object."""
        name = data.get("name")
        if not name:
            raise ValueError(f"Component without name: {data}")
        if not isinstance(name, str):
            raise ValueError(f"Component name must be a string, got {name!r}")

        vendor = None
        vendor_data = data.get("vendor")
        if isinstance(vendor_data, dict):
            vendor = VendorIdentity(
                short_name=vendor_data.get("shortname", vendor_data.get("short_name")),
                full_name=vendor_data.get("fullname", vendor_data.get("full_name"))
            )

        return cls(
            name=name,
            version=data.get("version"),
            vendor=vendor,
            cpe_id=data.get("cpeid", data.get("cpe_id"))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "vendor": self.vendor.to_dict() if self.vendor else None,
            "cpeid": self.cpe_id
        }


@dataclass(frozen=True)
class NeedleWithMeta:
    """A search needle and a description of how it was derived."""

    needle: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "needle": self.needle,
            "description": self.description
        }


@dataclass(frozen=True)
class Match:
    """A guessed vendor or product token and its edit distance to the haystack."""

    needle: str
    distance: int

    def concat(self, other: 'Match') -> 'Match':
        """Join two matches into a ``vendor:product`` match."""
        return Match(f"{self.needle}:{other.needle}", self.distance + other.distance)


@dataclass
class CveRecord:
    """A CVE returned by cve-search for one of the candidate needles."""

    cve_id: str
    summary: str
    cvss: Optional[float]
    published: Optional[str]
    modified: Optional[str]
    references: List[str] = field(default_factory=list)
    vulnerable_configuration: List[str] = field(default_factory=list)
    used_needle: Optional[str] = None
    matched_by: Optional[str] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any], used_needle: Optional[str] = None,
                  matched_by: Optional[str] = None) -> 'CveRecord':
        """Create CveRecord from a cve-search JSON document."""
        cve_id = data.get("id")
        if not cve_id:
            raise ValueError(f"cve-search document without id: {data}")

        cvss = data.get("cvss")
        try:
            cvss = float(cvss) if cvss is not None else None
        except (TypeError, ValueError):
            cvss = None

        # Entries are plain CPE strings or {"id": ..., "title": ...} objects
        configurations = []
        for entry in data.get("vulnerable_configuration", []) or []:
            if isinstance(entry, dict):
                entry = entry.get("id")
            if entry:
                configurations.append(entry)

        return cls(
            cve_id=cve_id,
            summary=data.get("summary") or "",
            cvss=cvss,
            published=data.get("Published"),
            modified=data.get("Modified"),
            references=list(data.get("references", []) or []),
            vulnerable_configuration=configurations,
            used_needle=used_needle,
            matched_by=matched_by
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.cve_id,
            "summary": self.summary,
            "cvss": self.cvss,
            "published": self.published,
            "modified": self.modified,
            "references": self.references,
            "vulnerable_configuration": self.vulnerable_configuration,
            "used_needle": self.used_needle,
            "matched_by": self.matched_by
        }
