"""Tests for mergeability probing through disposable pull requests."""

import asyncio
from unittest.mock import patch

import pytest

from kinetic.cherry_pick.probe import check_conflicts, interpret
from kinetic.errors import (
    GitHubError,
    MissingHeadRefError,
    NoCherryPickableCommitsError,
    NotMergedError,
)
from kinetic.github.models import Mergeability, PullRequest


@pytest.fixture
def release(host):
    host.add_branch("release-1")
    return "release-1"


@pytest.mark.asyncio
async def test_clean_pull_request(host, client, release, fast_config):
    host.add_pr(100, commits=3)

    check = await check_conflicts(client, 100, release, config=fast_config)

    assert check.has_conflicts is False
    assert check.details == []
    assert check.commits == 3
    assert len(host.probes()) == 1
    assert host.open_probes() == []


@pytest.mark.asyncio
async def test_probe_targets_head_and_release(host, client, release,
                                              fast_config):
    host.add_pr(100)

    await check_conflicts(client, 100, release, config=fast_config)

    probe = host.probes()[0]
    assert probe["head"]["ref"] == "feature-100"
    assert probe["base"]["ref"] == release
    assert probe["title"] == (
        "[TEST] Conflict check for PR #100 cherry-pick to release-1"
    )


@pytest.mark.asyncio
async def test_conflicting_pull_request(host, client, release, fast_config):
    host.add_pr(101, commits=2)
    host.mergeability[("feature-101", release)] = [False]

    check = await check_conflicts(client, 101, release, config=fast_config)

    assert check.has_conflicts is True
    assert check.details == [
        "PR #101 commits cannot be cleanly merged into release-1",
        "Mergeable state: dirty",
    ]
    assert check.commits == 2
    assert host.open_probes() == []


@pytest.mark.asyncio
async def test_unknown_after_recheck_is_treated_as_conflict(
    host, client, release, fast_config
):
    host.add_pr(102)
    host.mergeability[("feature-102", release)] = [None]

    check = await check_conflicts(client, 102, release, config=fast_config)

    assert check.has_conflicts is True
    assert check.details == [
        "Unable to determine mergeability status - assuming conflicts exist"
    ]
    assert host.open_probes() == []


@pytest.mark.asyncio
async def test_recheck_picks_up_late_result(host, client, release,
                                            fast_config):
    host.add_pr(103)
    host.mergeability[("feature-103", release)] = [None, True]

    check = await check_conflicts(client, 103, release, config=fast_config)

    assert check.has_conflicts is False
    probe_number = host.probes()[0]["number"]
    assert host.calls("GET", f"/pulls/{probe_number}") == 2


@pytest.mark.asyncio
async def test_poll_waits_initial_then_recheck_delay(host, client, release,
                                                     fast_config):
    host.add_pr(104)
    host.mergeability[("feature-104", release)] = [None]
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    config = fast_config.model_copy(
        update={"initial_poll_delay": 3.0, "recheck_poll_delay": 2.0}
    )
    with patch("kinetic.cherry_pick.probe.asyncio.sleep", fake_sleep):
        await check_conflicts(client, 104, release, config=config)

    assert delays == [3.0, 2.0]


@pytest.mark.asyncio
async def test_deleted_head_branch_reports_caution(host, client, release,
                                                   fast_config):
    host.add_pr(200, commits=2, head_exists=False)

    check = await check_conflicts(client, 200, release, config=fast_config)

    assert check.has_conflicts is False
    assert check.commits == 2
    assert check.details == [
        "Cannot check conflicts: original PR head branch 'feature-200' "
        "may have been deleted. Proceed with caution."
    ]
    assert host.probes() == []
    assert host.calls("PATCH") == 0


@pytest.mark.asyncio
async def test_poll_failure_still_closes_probe(host, client, release,
                                               fast_config):
    host.add_pr(105)
    probe_number = host.next_number
    host.fail("GET", f"/pulls/{probe_number}", status=500)

    with pytest.raises(GitHubError, match=f"get PR #{probe_number}"):
        await check_conflicts(client, 105, release, config=fast_config)

    assert host.pulls[probe_number]["state"] == "closed"
    assert host.calls("PATCH", f"/pulls/{probe_number}") == 1


@pytest.mark.asyncio
async def test_failed_recheck_is_treated_as_conflict(host, client, release,
                                                    fast_config):
    host.add_pr(108)
    host.mergeability[("feature-108", release)] = [None]
    probe_number = host.next_number
    host.fail(
        "GET", f"/pulls/{probe_number}", status=502,
        message="Bad Gateway", after=1,
    )

    check = await check_conflicts(client, 108, release, config=fast_config)

    assert check.has_conflicts is True
    assert check.details == [
        "Unable to determine mergeability status - assuming conflicts exist"
    ]
    assert host.calls("GET", f"/pulls/{probe_number}") == 2
    assert host.open_probes() == []


@pytest.mark.asyncio
async def test_cancellation_while_polling_closes_probe(host, client,
                                                       release, fast_config):
    host.add_pr(106)
    sleeping = asyncio.Event()
    never = asyncio.Event()

    async def blocking_sleep(seconds):
        sleeping.set()
        await never.wait()

    with patch("kinetic.cherry_pick.probe.asyncio.sleep", blocking_sleep):
        task = asyncio.create_task(
            check_conflicts(client, 106, release, config=fast_config)
        )
        await sleeping.wait()
        assert len(host.open_probes()) == 1

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert len(host.probes()) == 1
    assert host.open_probes() == []


@pytest.mark.asyncio
async def test_close_failure_does_not_replace_result(host, client, release,
                                                     fast_config):
    host.add_pr(107)
    probe_number = host.next_number
    host.fail("PATCH", f"/pulls/{probe_number}", status=500)

    with patch("kinetic.cherry_pick.probe.logger") as mock_logger:
        check = await check_conflicts(
            client, 107, release, config=fast_config
        )

    assert check.has_conflicts is False
    warnings = [
        call for call in mock_logger.warning.call_args_list
        if "ProbeCleanupWarning" in str(call)
    ]
    assert len(warnings) == 1


@pytest.mark.asyncio
async def test_unreadable_close_response_does_not_replace_result(
        host, client, release, fast_config):
    host.add_pr(109)
    probe_number = host.next_number
    host.fail(
        "PATCH", f"/pulls/{probe_number}", status=200,
        body={"number": "not-a-number"},
    )

    with patch("kinetic.cherry_pick.probe.logger") as mock_logger:
        check = await check_conflicts(
            client, 109, release, config=fast_config
        )

    assert check.has_conflicts is False
    warnings = [
        call for call in mock_logger.warning.call_args_list
        if "ProbeCleanupWarning" in str(call)
    ]
    assert len(warnings) == 1


@pytest.mark.asyncio
async def test_unmerged_pull_request_is_rejected(host, client, release,
                                                 fast_config):
    host.add_pr(108, merged_at=None)

    with pytest.raises(NotMergedError, match="PR #108 is not merged"):
        await check_conflicts(client, 108, release, config=fast_config)
    assert host.probes() == []


@pytest.mark.asyncio
async def test_merge_commits_only_is_rejected(host, client, release,
                                              fast_config):
    host.add_pr(109, commits=0, merge_commits=1)

    with pytest.raises(NoCherryPickableCommitsError):
        await check_conflicts(client, 109, release, config=fast_config)
    assert host.probes() == []


@pytest.mark.asyncio
async def test_missing_head_ref_is_rejected(host, client, release,
                                            fast_config):
    host.add_pr(110, head="")

    with pytest.raises(MissingHeadRefError):
        await check_conflicts(client, 110, release, config=fast_config)
    assert host.probes() == []


def test_interpret_without_state_descriptor():
    probe = PullRequest(
        number=1, mergeable=Mergeability.FALSE, mergeable_state=None
    )

    has_conflicts, details = interpret(probe, 7, "release-2")

    assert has_conflicts
    assert details == [
        "PR #7 commits cannot be cleanly merged into release-2"
    ]
