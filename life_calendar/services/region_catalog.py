"""Region catalog: average life expectancy per region.

The catalog is read-only after construction and passed explicitly to the
services that need it. The built-in table can be replaced by a YAML file
mapping region name to years:

    Россия: 72
    США: 79
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from ..domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LIFE_EXPECTANCY = 72

# Average life expectancy by region (years)
DEFAULT_REGIONS: Dict[str, int] = {
    "Россия": 72,
    "США": 79,
    "Германия": 81,
    "Япония": 84,
    "Франция": 83,
}


def normalize_region_capitalization(text: str) -> str:
    """Upper-case the first character and lower-case the rest.

    A naive transform: "россия" and "РОССИЯ" both become "Россия", but
    abbreviations and multi-word names ("США", "Новая Зеландия") do not
    survive it. RegionCatalog.normalize compensates by matching catalog
    keys case-insensitively first.

    A first character whose upper-case form is more than one character
    ("ß" -> "SS") is kept as is, so applying the rule twice changes nothing.
    """
    text = text.strip()
    first, rest = text[:1], text[1:]
    upper = first.upper()
    if len(upper) == 1:
        first = upper
    return first + rest.lower()


class RegionCatalog:
    """Static mapping of canonical region name to expectancy in years."""

    def __init__(
        self,
        regions: Mapping[str, int],
        default_expectancy: int = DEFAULT_LIFE_EXPECTANCY,
    ) -> None:
        if not regions:
            raise ConfigurationError("Region catalog is empty")
        for name, years in regions.items():
            if not isinstance(name, str) or not name.strip():
                raise ConfigurationError(f"Invalid region name in catalog: {name!r}")
            if isinstance(years, bool) or not isinstance(years, int) or years <= 0:
                raise ConfigurationError(
                    f"Life expectancy for {name!r} must be a positive integer, got {years!r}"
                )
        if default_expectancy <= 0:
            raise ConfigurationError(
                f"Default life expectancy must be positive, got {default_expectancy!r}"
            )

        self._regions: Dict[str, int] = dict(regions)
        self._by_casefold: Dict[str, str] = {
            name.casefold(): name for name in self._regions
        }
        self.default_expectancy = default_expectancy

    def normalize(self, text: str) -> str:
        """Return the canonical form of a user-entered region name.

        Catalog keys are matched case-insensitively; anything else falls back
        to normalize_region_capitalization. Idempotent.
        """
        stripped = text.strip()
        capitalized = normalize_region_capitalization(stripped)
        for candidate in (stripped, capitalized):
            canonical = self._by_casefold.get(candidate.casefold())
            if canonical is not None:
                return canonical
        return capitalized

    def lookup(self, canonical_name: str) -> Optional[int]:
        """Return expectancy years for a canonical name, or None if unknown."""
        return self._regions.get(canonical_name)

    def expectancy_for(self, region: str) -> int:
        """Expectancy for a persisted region, falling back to the default."""
        years = self.lookup(region)
        if years is None:
            logger.warning(
                "Region %r not in catalog, using default expectancy %d",
                region,
                self.default_expectancy,
            )
            return self.default_expectancy
        return years

    def list_regions(self) -> List[str]:
        return list(self._regions)

    def __contains__(self, canonical_name: str) -> bool:
        return canonical_name in self._regions

    def __len__(self) -> int:
        return len(self._regions)


def load_regions_file(file_path: Path) -> Dict[str, int]:
    """Load a YAML mapping of region name to life expectancy years."""
    if not file_path.exists():
        raise ConfigurationError(f"Region catalog file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Region catalog file {file_path} is not valid YAML: {e}"
        ) from e

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Region catalog file {file_path} must contain a mapping of region to years"
        )
    return {str(name): years for name, years in content.items()}


def load_region_catalog(
    catalog_path: Optional[str] = None,
    default_expectancy: int = DEFAULT_LIFE_EXPECTANCY,
) -> RegionCatalog:
    """Build the catalog from a YAML file, or the built-in table if no path is given."""
    if catalog_path:
        path = Path(catalog_path).expanduser()
        regions = load_regions_file(path)
        logger.info("Loaded %d regions from %s", len(regions), path)
    else:
        regions = DEFAULT_REGIONS

    return RegionCatalog(regions, default_expectancy=default_expectancy)
