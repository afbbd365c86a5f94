from typing import Dict, Iterable, List, Sequence, Tuple

from core.contracts.models import CreatePullRequest, ReportedDependency, ReportedRequirement
from utils.logger import logger


def equivalence_key(pr: CreatePullRequest) -> Tuple:
    """
    Returns the key that decides whether two messages are the same logical PR.

    Dependencies and files are sorted so their order within the message does
    not matter. Title, body and commit message are not part of the key.
    """
    dependencies = tuple(sorted(d.key for d in pr.dependencies))
    files = tuple(sorted((f.path, f.content) for f in pr.updated_dependency_files))
    return (pr.base_commit_sha, pr.dependency_group, dependencies, files)


def equivalent(a: CreatePullRequest, b: CreatePullRequest) -> bool:
    if a.base_commit_sha != b.base_commit_sha or a.dependency_group != b.dependency_group:
        return False
    if len(a.updated_dependency_files) != len(b.updated_dependency_files):
        return False
    return equivalence_key(a) == equivalence_key(b)


def union_requirements(*requirement_lists: Iterable[ReportedRequirement]) -> List[ReportedRequirement]:
    """Concatenates requirement lists, dropping repeated (requirement, file) pairs."""
    seen = set()
    merged = []
    for requirements in requirement_lists:
        for requirement in requirements:
            pair = (requirement.requirement, requirement.file)
            if pair not in seen:
                seen.add(pair)
                merged.append(requirement)
    return merged


def _add_dependency(merged: Dict[Tuple[str, str], ReportedDependency], dependency: ReportedDependency) -> None:
    existing = merged.get(dependency.key)
    if existing is None:
        merged[dependency.key] = dependency
        return
    requirements = union_requirements(existing.requirements, dependency.requirements)
    merged[dependency.key] = existing.model_copy(update={"requirements": requirements})


def merge_pull_requests(kept: CreatePullRequest, candidate: CreatePullRequest) -> CreatePullRequest:
    """
    Merges the dependencies of `candidate` into `kept`.

    Both messages must already be equivalent. Every field other than the
    dependency list is taken from `kept`.
    """
    merged: Dict[Tuple[str, str], ReportedDependency] = {}
    for dependency in kept.dependencies:
        _add_dependency(merged, dependency)
    for dependency in candidate.dependencies:
        _add_dependency(merged, dependency)
    return kept.model_copy(update={"dependencies": list(merged.values())})


def fold_pull_request_messages(pull_requests: Sequence[CreatePullRequest]) -> List[CreatePullRequest]:
    """
    Collapses equivalent pull request messages into one.

    Args:
        pull_requests: Candidate messages in the order they were produced.

    Returns:
        The deduplicated messages, in order of first appearance.
    """
    folded: List[CreatePullRequest] = []
    for candidate in pull_requests:
        index = next((i for i, pr in enumerate(folded) if equivalent(pr, candidate)), -1)
        if index < 0:
            folded.append(candidate)
            continue

        logger.debug(f"Merging pull request '{candidate.pr_title}' into message #{index}.")
        folded[index] = merge_pull_requests(folded[index], candidate)

    logger.debug(f"Folded {len(pull_requests)} pull request messages into {len(folded)}.")
    return folded
