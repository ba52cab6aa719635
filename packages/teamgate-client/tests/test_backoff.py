"""Retry delay schedules."""

import pytest

from teamgate_client.backoff import exponential_delay, fixed_delay, linear_delay


def test_exponential_doubles_each_attempt():
    assert [exponential_delay(n, 1.0) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]


def test_exponential_is_capped():
    assert exponential_delay(10, 0.5, max_s=8.0) == 8.0


def test_linear_grows_by_one_step():
    assert [linear_delay(n, 1.0) for n in range(3)] == [1.0, 2.0, 3.0]


def test_fixed_ignores_attempt():
    assert fixed_delay(0, 0.1) == fixed_delay(7, 0.1) == 0.1


@pytest.mark.parametrize("fn", [exponential_delay, linear_delay, fixed_delay])
def test_negative_attempt_is_rejected(fn):
    with pytest.raises(ValueError):
        fn(-1, 1.0)
