from datetime import datetime, timedelta, timezone

import pytest

from mechalligator.ids import new_ulid

ALPHABET = set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_shape():
    value = new_ulid(datetime(2024, 5, 1, tzinfo=timezone.utc))
    assert len(value) == 26
    assert set(value) <= ALPHABET


def test_epoch_has_zero_time_prefix():
    assert new_ulid(EPOCH)[:10] == "0000000000"


def test_one_millisecond_after_epoch():
    assert new_ulid(EPOCH + timedelta(milliseconds=1))[:10] == "0000000001"


def test_later_times_sort_later():
    earlier = new_ulid(datetime(2024, 1, 1, tzinfo=timezone.utc))
    later = new_ulid(datetime(2024, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
    assert earlier < later


def test_same_millisecond_shares_prefix_but_differs():
    when = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)
    first, second = new_ulid(when), new_ulid(when)
    assert first[:10] == second[:10]
    assert first != second


def test_naive_time_is_local_time():
    naive = datetime(2024, 6, 1, 8, 30)
    assert new_ulid(naive)[:10] == new_ulid(naive.astimezone())[:10]


def test_default_is_now():
    before = new_ulid(datetime.now(timezone.utc))
    current = new_ulid()
    after = new_ulid(datetime.now(timezone.utc) + timedelta(milliseconds=1))
    assert before[:10] <= current[:10] <= after[:10]


def test_time_before_epoch_is_rejected():
    with pytest.raises(ValueError):
        new_ulid(EPOCH - timedelta(milliseconds=1))