from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class WireModel(BaseModel):
    """Permissive base for service payloads: unknown fields are dropped and
    field names are matched without regard to case."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _match_field_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        names = {name.lower(): name for name in cls.model_fields}
        return {names.get(str(key).lower(), key): value for key, value in data.items()}


def _text_mapping(value: Any) -> Any:
    if not value:
        return {}
    if not isinstance(value, dict):
        return value
    return {str(k): "" if v is None else v for k, v in value.items()}


class Project(WireModel):
    projectid: str
    title: Optional[str] = None
    startdate: Optional[str] = None
    projecttype: Optional[str] = None
    description: Optional[str] = None


class LoginResponse(WireModel):
    userid: Optional[str] = None
    role: Optional[str] = None
    token: Optional[str] = None
    projects: List[Project] = Field(default_factory=list)

    @field_validator("projects", mode="before")
    @classmethod
    def _no_null_projects(cls, value):
        return value or []


class TestCase(WireModel):
    __test__ = False

    testcaseid: str
    testdesc: Optional[str] = None
    pretestid: Optional[str] = None
    prereq: Optional[str] = None
    tag: List[str] = Field(default_factory=list)
    projectid: List[str] = Field(default_factory=list)

    @field_validator("tag", "projectid", mode="before")
    @classmethod
    def _no_null_lists(cls, value):
        return value or []


class TestPlan(WireModel):
    __test__ = False

    current_testid: Optional[str] = None
    pretestid_steps: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    pretestid_scripts: Dict[str, str] = Field(default_factory=dict)
    current_bdd_steps: Dict[str, str] = Field(default_factory=dict)

    @field_validator("pretestid_steps", mode="before")
    @classmethod
    def _no_null_steps(cls, value):
        if not value:
            return {}
        if not isinstance(value, dict):
            return value
        return {str(k): _text_mapping(v) for k, v in value.items()}

    @field_validator("pretestid_scripts", "current_bdd_steps", mode="before")
    @classmethod
    def _no_null_mapping(cls, value):
        return _text_mapping(value)


class GenerateScriptRequest(BaseModel):
    """Body of the script generation call. The service expects these exact
    keys, spaces and hyphens included."""

    model_config = ConfigDict(populate_by_name=True)

    pretestid_steps: Dict[str, Dict[str, str]] = Field(default_factory=dict, alias="pretestid - steps")
    pretestid_scripts: Dict[str, str] = Field(default_factory=dict, alias="pretestid - scripts")
    current_testid: str = Field(alias="current testid")
    current_bdd_steps: Dict[str, str] = Field(default_factory=dict, alias="current - bdd steps")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class ExecutionRecord(WireModel):
    exeid: Optional[str] = None
    testcaseid: Optional[str] = None
    scripttype: Optional[str] = None
    datestamp: Optional[str] = None
    exetime: Optional[str] = None
    message: Optional[str] = None
    output: Optional[str] = None
    status: Optional[str] = None
