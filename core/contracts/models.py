from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, FieldSerializationInfo, field_serializer, model_validator

from utils.errors import DependencyGroupDecodeError

DEPENDENCY_GROUP_KEY = "dependency-group"


def to_kebab(name: str) -> str:
    return name.replace("_", "-")


def join_unix_path(directory: str, name: str) -> str:
    """
    Joins a directory and a file name into a forward-slash path.

    Backslashes are treated as separators so paths produced on Windows
    compare equal to the same paths produced elsewhere.
    """
    directory = directory.replace("\\", "/")
    name = name.replace("\\", "/")
    if not directory:
        return name
    if not name:
        return directory
    if directory.endswith("/") or name.startswith("/"):
        return directory + name
    return f"{directory}/{name}"


def encode_dependency_group(group: Optional[str]) -> Optional[Dict[str, str]]:
    """Encodes a group name as `null` or `{"name": group}`."""
    if group is None:
        return None
    return {"name": group}


def decode_dependency_group(value: Any) -> Optional[str]:
    """
    Decodes the wire form of the `dependency-group` field.

    Args:
        value: The raw JSON value.

    Returns:
        The group name, or None when the value is `null`.

    Raises:
        DependencyGroupDecodeError: If the value is any other shape.
    """
    if value is None:
        return None
    if isinstance(value, dict) and set(value) == {"name"} and isinstance(value["name"], str):
        return value["name"]
    raise DependencyGroupDecodeError(f"Expected null or an object with a `name` property, got: {value!r}")


class WireModel(BaseModel):
    """Immutable record that reads and writes kebab-case keys."""

    model_config = ConfigDict(alias_generator=to_kebab, populate_by_name=True, frozen=True)


class ReportedRequirement(WireModel):
    requirement: str
    file: str


class ReportedDependency(WireModel):
    name: str
    version: str
    requirements: List[ReportedRequirement] = Field(default_factory=list)
    previous_version: Optional[str] = None
    previous_requirements: Optional[List[ReportedRequirement]] = None

    @property
    def key(self) -> Tuple[str, str]:
        # name is case-insensitive, version is compared literally
        return (self.name.lower(), self.version)


class DependencyFile(WireModel):
    directory: str
    name: str
    content: str

    @property
    def path(self) -> str:
        return join_unix_path(self.directory, self.name)


class CreatePullRequest(WireModel):
    """
    A request to open one pull request upstream.

    `dependency_group` is a plain optional string in memory. On the wire it is
    either `null` or `{"name": "group-name"}`.
    """

    dependencies: List[ReportedDependency]
    updated_dependency_files: List[DependencyFile]
    base_commit_sha: str
    commit_message: str
    pr_title: str
    pr_body: str
    dependency_group: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def decode_wire_group(cls, data: Any) -> Any:
        if isinstance(data, dict) and DEPENDENCY_GROUP_KEY in data:
            data = dict(data)
            data[DEPENDENCY_GROUP_KEY] = decode_dependency_group(data[DEPENDENCY_GROUP_KEY])
        return data

    @field_serializer("dependency_group")
    def encode_wire_group(self, group: Optional[str], info: FieldSerializationInfo) -> Any:
        if info.by_alias:
            return encode_dependency_group(group)
        return group

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "CreatePullRequest":
        return cls.model_validate(payload)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def get_report(self) -> str:
        """Renders the default human-readable report for this message."""
        from core.formatter.report_formatter import ReportFormatter

        return ReportFormatter().format(self)
