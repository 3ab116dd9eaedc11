from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator, model_validator


def _coerce_str(value: Any) -> Any:
    # JSON bodies often send years as numbers
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class PropertyFilter(BaseModel):
    """One (propertyName, propertyValue) constraint supplied by the caller.

    The caller's original object is kept so it can be forwarded to eBay
    exactly as received, unknown keys and missing fields included.
    """

    model_config = ConfigDict(extra="ignore")

    propertyName: Optional[str] = None
    propertyValue: Optional[str] = None

    _raw: Optional[dict[str, Any]] = PrivateAttr(default=None)

    @field_validator("propertyName", "propertyValue", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _coerce_str(v)

    @model_validator(mode="wrap")
    @classmethod
    def keep_raw(cls, data: Any, handler):
        model = handler(data)
        if isinstance(data, dict):
            model._raw = dict(data)
        return model

    def to_upstream(self) -> dict[str, Any]:
        if self._raw is not None:
            return dict(self._raw)
        return self.model_dump(exclude_unset=True)


class CompatibilityRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    categoryId: Optional[str] = None
    propertyFilters: list[PropertyFilter] = []
    propertyNames: list[str] = []

    @field_validator("categoryId", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> Any:
        return _coerce_str(v)

    @field_validator("propertyFilters", "propertyNames", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


def _require_text(value: Any) -> Any:
    value = _coerce_str(value)
    if isinstance(value, str) and not value.strip():
        raise ValueError("must not be empty")
    return value


class MakesRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    year: str

    @field_validator("year", mode="before")
    @classmethod
    def require_year(cls, v: Any) -> Any:
        return _require_text(v)


class ModelsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    year: str
    make: str

    @field_validator("year", "make", mode="before")
    @classmethod
    def require_fields(cls, v: Any) -> Any:
        return _require_text(v)


# ---------------------------------------------------------------------------
# Upstream payloads
# ---------------------------------------------------------------------------


class CompatibilityDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    propertyName: Optional[str] = None
    propertyValue: Optional[str] = None

    @field_validator("propertyName", "propertyValue", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _coerce_str(v)


class CompatibilityRecord(BaseModel):
    """One vehicle fitment reported by eBay."""

    model_config = ConfigDict(extra="ignore")

    compatibilityDetails: list[CompatibilityDetail] = []

    @field_validator("compatibilityDetails", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    def as_dict(self) -> dict[str, str]:
        details: dict[str, str] = {}
        for detail in self.compatibilityDetails:
            if detail.propertyName:
                details[detail.propertyName] = detail.propertyValue or ""
        return details


class MultiCompatibilityResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    compatibilities: list[CompatibilityRecord] = []

    @field_validator("compatibilities", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class PropertyValuesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    propertyValues: list[Any] = []

    @field_validator("propertyValues", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v
