"""
RecordSource implementations backed by the Azure DevOps CLI (``az``).

Every call runs ``az`` with an explicit argument list (no shell) and
parses its JSON output. Failures of any kind surface as
SourceUnavailableError so the browsers can show a "no data" state.
"""

from __future__ import annotations

import json
import logging
import subprocess
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from fields import WORK_ITEM_DEFAULT_FIELDS
from tui.providers import SourceUnavailableError

logger = logging.getLogger(__name__)

AZ = "az"
PR_STATUSES = ("active", "completed", "abandoned", "all")
SETUP_HINT = (
    "Is the Azure DevOps CLI authenticated and are defaults set? "
    "Try passing --org/--project, setting AZURE_DEVOPS_ORG/AZURE_DEVOPS_PROJECT, "
    'or run "az devops configure --list".'
)

DEFAULT_WIQL = """
Select [System.Id], [System.Title], [System.State], [System.AssignedTo], [System.IterationPath]
From WorkItems
Where [System.TeamProject] = @project
  And [System.WorkItemType] = 'Task'
  And [System.State] NOT IN ('Closed', 'Done', 'Removed', 'Resolved', 'Completed')
Order By [System.ChangedDate] DESC
"""


def run_az(args: Sequence[str], timeout: float | None = None) -> str:
    """Run az with args and return its stdout."""
    command = [AZ, *args]
    logger.debug("Running %s", " ".join(command))
    try:
        result = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise SourceUnavailableError(
            "The Azure CLI ('az') was not found on PATH. Install it and the azure-devops extension."
        ) from e
    except subprocess.TimeoutExpired as e:
        raise SourceUnavailableError(f'Command "{" ".join(command)}" timed out') from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        logger.warning("az exited with code %s: %s", result.returncode, stderr)
        raise SourceUnavailableError(
            f'Command "{" ".join(command)}" exited with code {result.returncode}: {stderr}'
        )
    return result.stdout


def parse_json_or_raise(label: str, text: str | None) -> Any:
    """Parse az JSON output, explaining empty or garbled output."""
    trimmed = (text or "").strip()
    if not trimmed:
        raise SourceUnavailableError(f"{label} returned no JSON. {SETUP_HINT}")
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError as e:
        preview = trimmed[:200]
        raise SourceUnavailableError(f"{label} JSON parse failed: {e}. Output preview: {preview}") from e


def with_org_project(args: Sequence[str], org: str | None, project: str | None) -> list[str]:
    extra = list(args)
    if org:
        extra += ["--organization", org]
    if project:
        extra += ["--project", project]
    return extra


@dataclass(frozen=True)
class DevOpsDefaults:
    """Organization and project, from flags or ``az devops configure``."""

    organization: str | None = None
    project: str | None = None


def parse_configure_list(text: str) -> DevOpsDefaults:
    """Read organization/project out of ``az devops configure --list``."""
    values = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip() or None
    return DevOpsDefaults(values.get("organization"), values.get("project"))


def get_devops_defaults() -> DevOpsDefaults:
    return parse_configure_list(run_az(["devops", "configure", "--list"]))


class DefaultsResolver:
    """Fills missing organization/project from the CLI defaults, once."""

    def __init__(self, org: str | None = None, project: str | None = None) -> None:
        self._given = DevOpsDefaults(org, project)
        self._resolved: DevOpsDefaults | None = None

    def get(self) -> DevOpsDefaults:
        if self._given.organization and self._given.project:
            return self._given
        if self._resolved is None:
            try:
                cli = get_devops_defaults()
            except SourceUnavailableError as e:
                logger.warning("Could not read az devops defaults: %s", e)
                cli = DevOpsDefaults()
            self._resolved = DevOpsDefaults(
                self._given.organization or cli.organization,
                self._given.project or cli.project,
            )
        return self._resolved


def pull_request_url(pr: Mapping[str, Any], defaults: DevOpsDefaults) -> str:
    """Web link to a pull request, or "" when it cannot be built."""
    repository = pr.get("repository") or {}
    repo = repository.get("name")
    project = (repository.get("project") or {}).get("name") or defaults.project
    pr_id = pr.get("pullRequestId")
    org = (defaults.organization or "").rstrip("/")
    if org and project and repo and pr_id:
        return f"{org}/{project}/_git/{repo}/pullrequest/{pr_id}"
    return ""


def work_item_url(item: Mapping[str, Any], defaults: DevOpsDefaults) -> str:
    """Web link to a work item, or "" when it cannot be built."""
    item_id = item.get("System.Id")
    project = item.get("System.TeamProject") or defaults.project
    org = (defaults.organization or "").rstrip("/")
    if org and project and item_id:
        return f"{org}/{project}/_workitems/edit/{item_id}"
    return ""


class PullRequestSource:
    """Pull requests from ``az repos pr list``."""

    def __init__(self, status: str = "active", org: str | None = None, project: str | None = None) -> None:
        if status not in PR_STATUSES:
            raise ValueError(f'Invalid status "{status}". Allowed: {", ".join(PR_STATUSES)}')
        self.status = status
        self.org = org
        self.project = project

    def fetch(self) -> list[dict]:
        args = ["repos", "pr", "list", "--status", self.status, "--output", "json"]
        data = parse_json_or_raise("repos pr list", run_az(with_org_project(args, self.org, self.project)))
        if not isinstance(data, list):
            raise SourceUnavailableError("repos pr list did not return a list")
        return data


def flatten_work_item(item: Mapping[str, Any]) -> dict:
    """Work item JSON -> flat record keyed by field reference name."""
    record = dict(item.get("fields") or {})
    record["System.Id"] = item.get("id", record.get("System.Id"))
    return record


def read_wiql(path: Path) -> str:
    try:
        return path.read_text()
    except OSError as e:
        raise SourceUnavailableError(f"Cannot read WIQL file {path}: {e}") from e


class WorkItemSource:
    """Work items matched by a WIQL query, fetched one by one."""

    def __init__(
        self,
        wiql: str = DEFAULT_WIQL,
        fields: Sequence[str] = WORK_ITEM_DEFAULT_FIELDS,
        org: str | None = None,
        project: str | None = None,
    ) -> None:
        self.wiql = wiql
        self.fields = [f for f in fields if "." in f]
        self.org = org
        self.project = project

    def fetch_ids(self) -> list[int]:
        args = ["boards", "query", "--wiql", self.wiql, "--output", "json"]
        data = parse_json_or_raise("boards query", run_az(with_org_project(args, self.org, self.project)))
        # Older CLI versions wrap results in {"workItems": [...]}
        items = data.get("workItems", []) if isinstance(data, dict) else data
        return [w["id"] for w in items or [] if isinstance(w, dict) and "id" in w]

    def fetch_item(self, item_id: int) -> dict:
        args = ["boards", "work-item", "show", "--id", str(item_id), "--output", "json"]
        if self.fields:
            args[5:5] = ["--fields", ",".join(self.fields)]
        # work-item show takes --org but not --project
        item = parse_json_or_raise(f"work-item {item_id}", run_az(with_org_project(args, self.org, None)))
        return flatten_work_item(item)

    def fetch(self) -> list[dict]:
        return [self.fetch_item(item_id) for item_id in self.fetch_ids()]


class BrowserLinkOpener:
    """LinkOpener that hands the URL to the system web browser."""

    def open(self, url: str) -> None:
        if not url:
            return
        logger.debug("Opening %s", url)
        webbrowser.open(url)
