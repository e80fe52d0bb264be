from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator
from typing import List, Optional


INCIDENT_TYPES = ("flood", "fire", "earthquake", "cyclone", "drought", "heatwave", "other")
SEVERITIES = ("high", "medium", "low")
STATUSES = ("reported", "active", "monitoring", "resolved")
RESOURCE_CATEGORIES = ("transport", "rescue_teams", "shelters")


def normalize_choice(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip().lower()
    return value or None


class Incident(BaseModel):
    """A reported disaster event.

    Identifier, coordinates, type and severity are optional at the model
    level so that structurally invalid records can still be represented and
    excluded by the engine instead of failing the whole batch.
    """
    id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    type: Optional[str] = None                # flood | fire | earthquake | ... | other
    severity: Optional[str] = None            # high | medium | low
    title: str = ""
    description: str = ""
    location: str = ""
    reported: Optional[str] = None            # ISO-8601, display only
    affected_count: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("affected_count", "affected")
    )
    status: str = "reported"                  # reported | active | monitoring | resolved

    @field_validator("id", mode="before")
    @classmethod
    def _strip_id(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v):
        v = normalize_choice(v)
        if v is None:
            return None
        return v if v in INCIDENT_TYPES else "other"

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, v):
        v = normalize_choice(v)
        if v is None:
            return None
        return v if v in SEVERITIES else "medium"

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, v):
        v = normalize_choice(v)
        return v if v in STATUSES else "reported"

    @field_validator("affected_count")
    @classmethod
    def _non_negative_count(cls, v):
        if v is not None and v < 0:
            return None
        return v

    @property
    def is_valid(self) -> bool:
        return None not in (self.id, self.lat, self.lng, self.type, self.severity)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class ResourceUnit(BaseModel):
    unit_id: str
    name: str = ""
    base: str = ""


class Shelter(BaseModel):
    shelter_id: str
    name: str = ""
    total_capacity: int = Field(ge=0)
    available_capacity: int = Field(ge=0)

    @model_validator(mode="after")
    def _capacity_within_total(self):
        if self.available_capacity > self.total_capacity:
            raise ValueError(
                f"shelter {self.shelter_id}: available_capacity "
                f"{self.available_capacity} exceeds total_capacity {self.total_capacity}"
            )
        return self


class ResourceCatalog(BaseModel):
    """Per-category availability snapshot. Every category must be present."""
    transport: List[ResourceUnit]
    rescue_teams: List[ResourceUnit]
    shelters: List[Shelter]

    @model_validator(mode="after")
    def _unique_ids(self):
        for category, ids in (
            ("transport", [u.unit_id for u in self.transport]),
            ("rescue_teams", [u.unit_id for u in self.rescue_teams]),
            ("shelters", [s.shelter_id for s in self.shelters]),
        ):
            if len(ids) != len(set(ids)):
                raise ValueError(f"duplicate identifiers in {category}")
        return self


class Demand(BaseModel):
    needed_transport: int = Field(default=0, ge=0)
    needed_rescue_teams: int = Field(default=0, ge=0)
    needed_shelter_capacity: int = Field(default=0, ge=0)


class ShelterAllocation(BaseModel):
    shelter_id: str
    capacity: int


class Recommendation(BaseModel):
    incident_id: str
    transport: List[str] = []
    rescue_teams: List[str] = []
    shelters: List[ShelterAllocation] = []
    demand: Optional[Demand] = None
    allocation_gap: dict = {}          # e.g. {"transport": 1, "shelter_capacity": 45}
    applied_at: Optional[str] = None   # set once the apply step has consumed it

    @property
    def shelter_capacity(self) -> int:
        return sum(s.capacity for s in self.shelters)

    @property
    def is_empty(self) -> bool:
        return not (self.transport or self.rescue_teams or self.shelters)


class IncidentReport(BaseModel):
    """Request body for POST /incidents."""
    type: str
    severity: str
    location: str
    lat: float
    lng: float
    description: str
    affected_count: Optional[int] = None


class StatusUpdate(BaseModel):
    status: str
