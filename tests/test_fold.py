import pytest

from core.contracts.models import CreatePullRequest, DependencyFile, ReportedDependency, ReportedRequirement
from core.fold import equivalent, fold_pull_request_messages, merge_pull_requests, union_requirements


def make_pr(
    dependencies=None,
    files=None,
    sha="TEST-SHA",
    group=None,
    title="pr title",
    body="pr body",
    commit_message="commit message",
) -> CreatePullRequest:
    if dependencies is None:
        dependencies = [dep("Dependency.A", "1.2.3", ("1.0.0", "/project.csproj"))]
    if files is None:
        files = [DependencyFile(directory="/", name="project.csproj", content="some content")]
    return CreatePullRequest(
        dependencies=dependencies,
        updated_dependency_files=files,
        base_commit_sha=sha,
        commit_message=commit_message,
        pr_title=title,
        pr_body=body,
        dependency_group=group,
    )


def dep(name, version, *requirements) -> ReportedDependency:
    return ReportedDependency(
        name=name,
        version=version,
        requirements=[ReportedRequirement(requirement=r, file=f) for r, f in requirements],
    )


def test_fold_empty():
    assert fold_pull_request_messages([]) == []


def test_fold_single_message_is_unchanged():
    pr = make_pr()
    assert fold_pull_request_messages([pr]) == [pr]


def test_unrelated_prs_are_not_folded():
    a = make_pr()
    b = make_pr(
        dependencies=[dep("Dependency.B", "1.2.3", ("2.0.0", "/project.csproj"))],
        files=[DependencyFile(directory="/", name="project.csproj", content="some other content")],
    )
    assert fold_pull_request_messages([a, b]) == [a, b]


@pytest.mark.parametrize(
    "overrides",
    [
        {"sha": "OTHER-SHA"},
        {"group": "group-x"},
        {"dependencies": [dep("Dependency.A", "1.2.4", ("1.0.0", "/project.csproj"))]},
        {"dependencies": [dep("Dependency.C", "1.2.3", ("1.0.0", "/project.csproj"))]},
        {"files": [DependencyFile(directory="/", name="project.csproj", content="changed")]},
        {"files": [DependencyFile(directory="/src", name="project.csproj", content="some content")]},
        {"files": []},
    ],
)
def test_any_key_difference_prevents_folding(overrides):
    a = make_pr()
    b = make_pr(**overrides)
    assert not equivalent(a, b)
    assert fold_pull_request_messages([a, b]) == [a, b]


def test_equivalent_prs_are_folded_and_requirements_merged():
    files = [DependencyFile(directory="/", name="Directory.Packages.props", content="some content")]
    a = make_pr(dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/project1.csproj"))], files=files)
    b = make_pr(dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/project2.csproj"))], files=files)

    folded = fold_pull_request_messages([a, b])

    expected = make_pr(
        dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/project1.csproj"), ("1.0.0", "/project2.csproj"))],
        files=files,
    )
    assert folded == [expected]
    assert folded[0].to_wire() == expected.to_wire()


def test_merge_carries_other_dependencies_through():
    a = make_pr(dependencies=[
        dep("Dependency.A", "1.2.3", ("1.0.0", "/a.csproj")),
        dep("Dependency.B", "2.0.0", ("1.5.0", "/a.csproj")),
    ])
    b = make_pr(dependencies=[
        dep("Dependency.B", "2.0.0", ("1.5.0", "/a.csproj")),
        dep("dependency.a", "1.2.3", ("1.0.0", "/b.csproj")),
    ])

    [merged] = fold_pull_request_messages([a, b])

    assert [d.name for d in merged.dependencies] == ["Dependency.A", "Dependency.B"]
    assert merged.dependencies[0].requirements == [
        ReportedRequirement(requirement="1.0.0", file="/a.csproj"),
        ReportedRequirement(requirement="1.0.0", file="/b.csproj"),
    ]
    assert merged.dependencies[1] == a.dependencies[1]


def test_merge_does_not_duplicate_requirements():
    a = make_pr()
    b = make_pr()
    [merged] = fold_pull_request_messages([a, b, a])
    assert merged == a


def test_first_seen_text_fields_are_kept():
    a = make_pr(title="first title", body="first body", commit_message="first commit")
    b = make_pr(
        dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/other.csproj"))],
        title="second title",
        body="second body",
        commit_message="second commit",
    )

    [merged] = fold_pull_request_messages([a, b])
    assert (merged.pr_title, merged.pr_body, merged.commit_message) == ("first title", "first body", "first commit")

    [merged] = fold_pull_request_messages([b, a])
    assert (merged.pr_title, merged.pr_body, merged.commit_message) == ("second title", "second body", "second commit")


def test_order_within_message_does_not_affect_equivalence():
    files = [
        DependencyFile(directory="/", name="a.csproj", content="a"),
        DependencyFile(directory="/", name="b.csproj", content="b"),
    ]
    dependencies = [dep("Dependency.A", "1.0.0"), dep("Dependency.B", "2.0.0")]
    a = make_pr(dependencies=dependencies, files=files)
    b = make_pr(dependencies=list(reversed(dependencies)), files=list(reversed(files)))

    assert equivalent(a, b)
    assert equivalent(b, a)
    assert len(fold_pull_request_messages([a, b])) == 1


def test_paths_are_normalized_before_comparison():
    a = make_pr(files=[DependencyFile(directory="src\\project", name="project.csproj", content="x")])
    b = make_pr(files=[DependencyFile(directory="src/project/", name="project.csproj", content="x")])
    assert equivalent(a, b)


def test_dependency_name_is_case_insensitive():
    a = make_pr(dependencies=[dep("Dependency.A", "1.2.3")])
    b = make_pr(dependencies=[dep("DEPENDENCY.A", "1.2.3")])
    assert equivalent(a, b)


def test_versions_are_compared_literally():
    a = make_pr(dependencies=[dep("Dependency.A", "1.0")])
    b = make_pr(dependencies=[dep("Dependency.A", "1.0.0")])
    assert not equivalent(a, b)
    assert fold_pull_request_messages([a, b]) == [a, b]


def test_output_keeps_first_appearance_order():
    a1 = make_pr(sha="A")
    b1 = make_pr(sha="B")
    a2 = make_pr(sha="A", dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/x.csproj"))])
    c1 = make_pr(sha="C")

    folded = fold_pull_request_messages([a1, b1, a2, c1])

    assert [pr.base_commit_sha for pr in folded] == ["A", "B", "C"]


def test_fold_is_idempotent():
    files = [DependencyFile(directory="/", name="Directory.Packages.props", content="c")]
    messages = [
        make_pr(dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/p1.csproj"))], files=files),
        make_pr(sha="OTHER"),
        make_pr(dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/p2.csproj"))], files=files),
    ]
    once = fold_pull_request_messages(messages)
    assert fold_pull_request_messages(once) == once


def test_fold_does_not_mutate_inputs():
    a = make_pr()
    b = make_pr(dependencies=[dep("Dependency.A", "1.2.3", ("1.0.0", "/other.csproj"))])
    before = a.model_copy(deep=True)

    fold_pull_request_messages([a, b])

    assert a == before
    assert len(a.dependencies[0].requirements) == 1


def test_merge_collapses_repeated_dependencies_in_kept_message():
    kept = make_pr(dependencies=[
        dep("Dependency.A", "1.2.3", ("1.0.0", "/a.csproj")),
        dep("dependency.a", "1.2.3", ("1.0.0", "/b.csproj")),
    ])
    merged = merge_pull_requests(kept, kept)
    assert len(merged.dependencies) == 1
    assert [r.file for r in merged.dependencies[0].requirements] == ["/a.csproj", "/b.csproj"]


def test_union_requirements_keeps_existing_first():
    r1 = ReportedRequirement(requirement="1.0.0", file="/a.csproj")
    r2 = ReportedRequirement(requirement="1.0.0", file="/b.csproj")
    r3 = ReportedRequirement(requirement="2.0.0", file="/a.csproj")
    assert union_requirements([r1, r2], [r2, r3, r1]) == [r1, r2, r3]
