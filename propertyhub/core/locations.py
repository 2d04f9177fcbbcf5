from pathlib import Path

import yaml
from pydantic import BaseModel, Field

DEFAULT_LOCATIONS_PATH = Path(__file__).resolve().parent.parent / "data" / "locations.yaml"


class Place(BaseModel):
    id: str
    name: str
    province_id: str | None = None
    city_id: str | None = None


class LocationTable(BaseModel):
    """Static id -> display name lookup for provinces, cities and districts."""

    provinces: list[Place] = Field(default_factory=list)
    cities: list[Place] = Field(default_factory=list)
    districts: list[Place] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str | Path = DEFAULT_LOCATIONS_PATH) -> "LocationTable":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @staticmethod
    def _name(places: list[Place], place_id: str | None) -> str:
        if not place_id:
            return ""
        return next((p.name for p in places if p.id == place_id), "")

    def province_name(self, province_id: str | None) -> str:
        return self._name(self.provinces, province_id)

    def city_name(self, city_id: str | None) -> str:
        return self._name(self.cities, city_id)

    def district_name(self, district_id: str | None) -> str:
        return self._name(self.districts, district_id)


# Loaded once, the file ships with the package
locations = LocationTable.from_yaml()
