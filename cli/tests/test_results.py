from __future__ import annotations

import pytest

from homelab_client.errors import ApiError
from homelab_client.results import gather


def test_gather_keeps_independent_results() -> None:
    def _fail():
        raise ApiError(500, "stats unavailable")

    results = gather(stats=_fail, containers=lambda: ["a", "b"])

    assert results["containers"].ok
    assert results["containers"].unwrap() == ["a", "b"]
    assert not results["stats"].ok
    assert results["stats"].value_or(None) is None
    with pytest.raises(ApiError):
        results["stats"].unwrap()


def test_gather_without_calls() -> None:
    assert gather() == {}
