"""
Tests for upload batch planning.
"""
from pathlib import Path

import pytest

from galeria.client.batching import plan_batches
from galeria.client.folders import UploadItem


def _items(*paths):
    return [UploadItem(path=Path("/tmp") / p, relative_path=p) for p in paths]


def _paths(batches):
    return [[item.relative_path for item in batch] for batch in batches]


def _has_both_groups(batch):
    paths = [item.relative_path for item in batch]
    return any(p.startswith("light/") for p in paths) and any(p.startswith("max/") for p in paths)


def test_empty():
    plan = plan_batches([])
    assert plan.batches == []
    assert plan.unmatched == []


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        plan_batches(_items("a.jpg"), batch_size=0)
    with pytest.raises(ValueError):
        plan_batches(_items("light/a.jpg", "max/a.jpg"), batch_size=1)


def test_flat_batches_are_consecutive():
    items = _items(*[f"{i}.jpg" for i in range(7)])

    batches = plan_batches(items, batch_size=3).batches

    assert [len(b) for b in batches] == [3, 3, 1]
    assert [i for b in batches for i in b] == items


def test_light_max_batches_always_pair():
    items = _items(*[f"light/{i}.jpg" for i in range(40)], *[f"max/{i}.jpg" for i in range(40)])

    batches = plan_batches(items, batch_size=30).batches

    assert len(batches) == 3
    for batch in batches:
        assert _has_both_groups(batch)
        assert len(batch) <= 30
    assert sum(len(b) for b in batches) == 80


def test_light_max_twins_share_a_batch():
    items = _items("light/a.jpg", "light/b.jpg", "max/b.jpg", "max/a.jpg")

    batches = plan_batches(items, batch_size=2).batches

    assert _paths(batches) == [["light/a.jpg", "max/a.jpg"], ["light/b.jpg", "max/b.jpg"]]


def test_uneven_groups_stay_within_batch_size():
    items = _items(*[f"light/{i}.jpg" for i in range(300)], "max/0.jpg")

    batches = plan_batches(items, batch_size=30).batches

    assert len(batches) == 11
    for batch in batches:
        assert len(batch) <= 30
        assert _has_both_groups(batch)
    light_sent = [p for b in _paths(batches) for p in b if p.startswith("light/")]
    assert sorted(light_sent) == sorted(f"light/{i}.jpg" for i in range(300))
    assert {id(i) for b in batches for i in b} == {id(i) for i in items}
    # The only max file is reused to keep later batches paired
    assert all(b[-1] is items[-1] for b in batches[1:])


def test_max_files_without_light_twin_are_not_sent():
    items = _items("light/a.jpg", "max/a.jpg", *[f"max/{i}.jpg" for i in range(10)])

    plan = plan_batches(items, batch_size=2)

    assert _paths(plan.batches) == [["light/a.jpg", "max/a.jpg"]]
    assert [i.relative_path for i in plan.unmatched] == [f"max/{i}.jpg" for i in range(10)]


def test_untagged_files_fill_first_batch():
    items = _items("light/a.jpg", "light/b.jpg", "max/a.jpg", "max/b.jpg", "cover.jpg")

    batches = plan_batches(items, batch_size=5).batches

    assert len(batches) == 1
    assert "cover.jpg" in _paths(batches)[0]
