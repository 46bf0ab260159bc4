import pytest

from garage_sales.utils import retry


def test_retry_backs_off_and_caps_delay():
    waits = []
    calls = {"n": 0}

    @retry(KeyError, tries=4, delay=1, backoff=3, max_delay=2, sleep=waits.append)
    def flaky():
        calls["n"] += 1
        if calls["n"] < 4:
            raise KeyError("not yet")
        return "done"

    assert flaky() == "done"
    assert waits == [1, 2, 2]


def test_retry_reraises_after_last_try():
    @retry(KeyError, tries=2, delay=0, sleep=lambda _: None)
    def always_fails():
        raise KeyError("down")

    with pytest.raises(KeyError):
        always_fails()


def test_retry_ignores_other_errors():
    calls = {"n": 0}

    @retry(KeyError, tries=3, delay=0, sleep=lambda _: None)
    def broken():
        calls["n"] += 1
        raise ValueError("bug")

    with pytest.raises(ValueError):
        broken()
    assert calls["n"] == 1
