import pytest

from globalcidr.errors import RegistryConflictError, RegistryNotFoundError
from globalcidr.utils.retry import DEFAULT_RETRIES, RetryError, is_conflict, retry, retry_on_conflict


class Flaky:
    def __init__(self, failures, exc_factory=lambda: RegistryConflictError("stale")):
        self.failures = failures
        self.exc_factory = exc_factory
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc_factory()
        return "ok"


def test_default_attempts():
    assert DEFAULT_RETRIES == 5


def test_succeeds_after_conflicts():
    fn = Flaky(failures=2)
    seen = []
    assert retry_on_conflict(fn, on_retry=lambda n, e: seen.append(n)) == "ok"
    assert fn.calls == 3
    assert seen == [1, 2]


def test_gives_up_after_last_attempt():
    fn = Flaky(failures=10)
    seen = []
    with pytest.raises(RetryError) as ei:
        retry_on_conflict(fn, retries=3, on_retry=lambda n, e: seen.append(n))
    assert fn.calls == 3
    assert seen == [1, 2]
    assert ei.value.attempts == 3
    assert isinstance(ei.value.__cause__, RegistryConflictError)


def test_non_conflict_store_errors_propagate_at_once():
    fn = Flaky(failures=3, exc_factory=lambda: RegistryNotFoundError("gone"))
    with pytest.raises(RegistryNotFoundError):
        retry_on_conflict(fn)
    assert fn.calls == 1


def test_unrelated_exceptions_propagate_at_once():
    fn = Flaky(failures=3, exc_factory=lambda: KeyError("x"))
    with pytest.raises(KeyError):
        retry_on_conflict(fn)
    assert fn.calls == 1


def test_is_conflict():
    assert is_conflict(RegistryConflictError("stale"))
    assert not is_conflict(RegistryNotFoundError("gone"))
    assert not is_conflict(ValueError())


def test_decorator_keeps_name_and_waits(monkeypatch):
    slept = []
    monkeypatch.setattr("globalcidr.utils.retry.time.sleep", slept.append)

    calls = []

    @retry(retries=3, delay=0.5, retry_on=(ValueError,))
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ValueError("again")
        return len(calls)

    assert flaky() == 3
    assert flaky.__name__ == "flaky"
    assert slept == [0.5, 0.5]


def test_retries_must_be_positive():
    with pytest.raises(ValueError):
        retry(retries=0)


def test_exhaustion_message_names_the_operation():
    with pytest.raises(RetryError, match=r"^updating registry in ns failed after 2 attempts: stale$"):
        retry_on_conflict(Flaky(failures=10), retries=2, what="updating registry in ns")


def test_exhaustion_message_defaults_to_function_name():
    def bump():
        raise RegistryConflictError("stale")

    with pytest.raises(RetryError, match=r"^bump failed after 1 attempts"):
        retry_on_conflict(bump, retries=1)
