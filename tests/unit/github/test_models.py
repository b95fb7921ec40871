"""Tests for GitHub snapshot models."""

from kinetic.github.models import Commit, Mergeability, PullRequest, Ref


def test_mergeability_from_nullable_flag():
    assert Mergeability.from_api(True) is Mergeability.TRUE
    assert Mergeability.from_api(False) is Mergeability.FALSE
    assert Mergeability.from_api(None) is Mergeability.UNKNOWN


def test_pull_request_tolerates_missing_fields():
    pr = PullRequest.from_api({
        "number": 3,
        "title": None,
        "body": None,
        "user": None,
        "head": None,
        "merged_at": None,
    })

    assert pr.title == ""
    assert pr.author == ""
    assert pr.head_ref == ""
    assert not pr.is_merged


def test_commit_parents_and_message():
    commit = Commit.from_api({
        "sha": "abc",
        "parents": [{"sha": "p1"}, {"sha": "p2"}],
        "commit": {"message": "Merge"},
    })

    assert commit.parents == ["p1", "p2"]
    assert commit.is_merge
    assert commit.message == "Merge"


def test_ref_reads_object_sha():
    ref = Ref.from_api({"ref": "refs/heads/main", "object": {"sha": "123"}})
    assert ref.sha == "123"
