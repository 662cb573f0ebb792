from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PropertyFilter(BaseModel):
    propertyName: str
    operator: str
    value: Optional[str] = None


class FilterGroup(BaseModel):
    filters: List[PropertyFilter] = Field(default_factory=list)


class SearchCriteria(BaseModel):
    """Body of a CRM search request.

    Field names follow the HubSpot wire format so the model dumps straight
    into the request payload.
    """

    filterGroups: List[FilterGroup] = Field(default_factory=list)
    properties: List[str] = Field(default_factory=list)
    limit: int = Field(default=100, ge=1, le=200)

    @classmethod
    def modified_since(cls, since_iso: str, properties: List[str], limit: int = 100) -> "SearchCriteria":
        """Records whose last modification is at or after ``since_iso``."""
        return cls(
            filterGroups=[
                FilterGroup(
                    filters=[
                        PropertyFilter(
                            propertyName="hs_lastmodifieddate",
                            operator="GTE",
                            value=since_iso,
                        )
                    ]
                )
            ],
            properties=properties,
            limit=limit,
        )


class CrmRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    properties: Dict[str, Optional[Any]] = Field(default_factory=dict)

    def has_value(self, name: str) -> bool:
        """True when the property is present and not empty."""
        value = self.properties.get(name)
        return value is not None and value != ""


class RecordUpdate(BaseModel):
    id: str
    properties: Dict[str, str]


class BatchUpdateAck(BaseModel):
    """Acknowledgement of a batch update, merged over all chunks sent."""

    requests: int = 0
    updated_ids: List[str] = Field(default_factory=list)
    status: Optional[str] = None
