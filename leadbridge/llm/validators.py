from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

LEAD_FIELDS = ("name", "email", "company", "useCase", "budget", "timeline")

# Fields that show the caller actually engaged with the agent
CONTACT_FIELDS = ("name", "email", "company", "useCase")


class LeadRecord(BaseModel):
    """Structured lead fields extracted from a call transcript"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    company: Optional[str] = None
    use_case: Optional[str] = Field(default=None, alias="useCase")
    budget: Optional[str] = None
    timeline: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def normalize_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        if isinstance(v, (dict, list)):
            return None
        v = str(v).strip()
        return v or None

    @classmethod
    def empty(cls) -> "LeadRecord":
        return cls()

    @classmethod
    def from_extraction(cls, data: Dict[str, Any]) -> "LeadRecord":
        """Merge whatever fields the model returned over the all-null record"""
        known = {key: data[key] for key in LEAD_FIELDS if key in data}
        if "useCase" not in known and "use_case" in data:
            known["useCase"] = data["use_case"]
        return cls.model_validate(known)

    def get(self, field_name: str) -> Optional[str]:
        if field_name == "useCase":
            return self.use_case
        return getattr(self, field_name)

    def count_filled(self, fields=CONTACT_FIELDS) -> int:
        return sum(1 for field_name in fields if self.get(field_name) is not None)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return self.model_dump(by_alias=True)
