"""ULID generation helper utilities."""

import ulid

TRANSACTION_PREFIX = "TXN"
REFUND_PREFIX = "RFND"


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ulid.ULID())


def generate_transaction_id(booking_id: str) -> str:
    """
    Build a settlement reference for a booking payment.

    The ULID suffix carries a millisecond timestamp plus randomness, so two
    confirmations of the same booking never share a reference.
    """
    return f"{TRANSACTION_PREFIX}-{booking_id}-{generate_ulid()}"


def generate_refund_reference(booking_id: str) -> str:
    """Build the reference recorded on a compensating refund row."""
    return f"{REFUND_PREFIX}-{booking_id}-{generate_ulid()}"
