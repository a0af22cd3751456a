"""
Request number allocator.

Numbers come from the `request_number` row of the sequences table, locked with
SELECT ... FOR UPDATE and incremented inside the transaction that inserts the
request. Because the counter only moves forward, a number is never issued
twice, even after the request holding it is deleted.
"""
import logging
from typing import Callable, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from worktrack.core.config import settings
from worktrack.db.session import store_errors
from worktrack.models.request import Request
from worktrack.models.sequence import Sequence

logger = logging.getLogger(__name__)

REQUEST_NUMBER_SEQUENCE = "request_number"


def format_request_number(value: int, width: Optional[int] = None) -> str:
    """
    Zero-pad to the minimum width; larger values simply get more digits.

    >>> format_request_number(42)
    '0042'
    >>> format_request_number(10000)
    '10000'
    """
    return str(value).zfill(width or settings.REQUEST_NUMBER_WIDTH)


def highest_request_number(db: Session) -> int:
    """
    Highest request number currently stored, or 0 when there are none.

    Ordering by length first keeps numeric order once numbers outgrow the
    padded width ("10000" sorts after "9999").
    """
    statement = (
        select(Request.request_number)
        .order_by(func.length(Request.request_number).desc(), Request.request_number.desc())
        .limit(1)
    )
    last = db.exec(statement).first()
    return int(last) if last else 0


def next_sequence_value(
    db: Session,
    name: str,
    operation: str,
    seed: Callable[[Session], int] = lambda db: 0,
) -> int:
    """
    Lock the named counter row, increment it and return the new value.

    A missing row is created starting after `seed(db)`. The increment is
    flushed, not committed, so it lands with the caller's transaction.
    """
    with store_errors(operation):
        counter = db.exec(
            select(Sequence)
            .where(Sequence.name == name)
            .with_for_update()
        ).first()

        if counter is None:
            start = seed(db)
            counter = Sequence(name=name, value=start)
            logger.info("Seeding %s sequence at %s", name, start)

        counter.value += 1
        db.add(counter)
        db.flush()

    return counter.value


def next_request_number(db: Session) -> str:
    """
    Reserve and return the next request number.

    Must run inside the caller's transaction: the increment is flushed but
    only becomes permanent when the request insert commits with it. Store
    failures raise TransientStoreError; there is no default value.
    """
    # First allocation continues after any imported requests
    value = next_sequence_value(
        db, REQUEST_NUMBER_SEQUENCE, "request number allocation", seed=highest_request_number
    )
    return format_request_number(value)
