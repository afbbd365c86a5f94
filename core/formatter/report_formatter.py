import re
from pathlib import Path
from typing import List, Optional, Tuple

import semver
from jinja2 import Environment, FileSystemLoader

from core.contracts.formatter import Formatter
from core.contracts.models import CreatePullRequest, ReportedDependency
from utils.errors import FormatterError

# NuGet allows a fourth "revision" number after major.minor.patch
REVISION_MATCHER = re.compile(r"^(\d+\.\d+\.\d+)\.(\d+)([-+].*)?$")


def version_sort_key(version: str) -> Tuple[semver.Version, int, semver.Version]:
    """
    Orders versions by SemVer precedence, accepting NuGet's 2- and 4-part forms.

    `1.0` is read as `1.0.0`. In `1.2.3.4-beta` the revision `4` sorts after
    the patch number and before the prerelease label.

    Raises:
        ValueError: If the version is not a valid semantic version.
    """
    revision = 0
    match = REVISION_MATCHER.match(version)
    if match:
        revision = int(match.group(2))
        version = match.group(1) + (match.group(3) or "")
    parsed = semver.Version.parse(version, optional_minor_and_patch=True)
    return (parsed.finalize_version(), revision, parsed)


def sort_for_report(dependencies: List[ReportedDependency]) -> List[ReportedDependency]:
    """
    Orders dependencies by name (case-insensitive), then by parsed version.

    Raises:
        FormatterError: If a version is not a valid semantic version.
    """
    try:
        return sorted(dependencies, key=lambda d: (d.name.lower(), version_sort_key(d.version)))
    except ValueError as e:
        raise FormatterError(f"Cannot order dependencies for report: {e}") from e


class ReportFormatter(Formatter):
    def __init__(
        self,
        template_dir: Optional[str] = None,
        template_name: str = "report.j2",
    ):
        if template_dir is None:
            # Default template directory relative to this file
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        self.template_name = template_name
        try:
            self.env = Environment(
                loader=FileSystemLoader(self.template_dir),
                trim_blocks=True,
                lstrip_blocks=True,
            )
        except Exception as e:
            raise FormatterError(f"Failed to initialize Jinja2 environment: {e}") from e

    def format(self, message: CreatePullRequest) -> str:
        dependencies = sort_for_report(message.dependencies)
        try:
            template = self.env.get_template(self.template_name)
            report = template.render(
                title=type(message).__name__,
                message=message,
                dependencies=dependencies,
            )
        except Exception as e:
            raise FormatterError(f"Failed to render template {self.template_name}: {e}") from e
        return report.strip()
