import time

import pytest

from staybook.core.deadline import Deadline, check_deadline
from staybook.core.exceptions import OperationCancelledException


def test_never_does_not_expire() -> None:
    deadline = Deadline.never()
    assert deadline.expired is False
    assert deadline.remaining_seconds() is None
    assert deadline.remaining_ms() is None
    deadline.check("op")


def test_expired_deadline_raises() -> None:
    deadline = Deadline(time.monotonic() - 1)
    assert deadline.expired is True
    assert deadline.remaining_seconds() == 0.0
    with pytest.raises(OperationCancelledException) as exc_info:
        deadline.check("create_booking")
    assert exc_info.value.details == {
        "operation": "create_booking",
        "reason": "deadline exceeded",
    }


def test_cancel_raises_even_before_expiry() -> None:
    deadline = Deadline.after(60)
    deadline.cancel()
    assert deadline.cancelled is True
    with pytest.raises(OperationCancelledException) as exc_info:
        deadline.check("confirm_payment")
    assert exc_info.value.details["reason"] == "cancelled by caller"


def test_remaining_ms_is_at_least_one() -> None:
    deadline = Deadline.after(0.0001)
    time.sleep(0.001)
    assert deadline.remaining_ms() == 1


def test_check_deadline_tolerates_none() -> None:
    check_deadline(None, "anything")
