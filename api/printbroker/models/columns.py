"""Column helpers shared by models."""

import uuid

from sqlalchemy import Numeric

# Money is stored as exact decimals; conversion to float happens at the API edge.
Money = Numeric(12, 2, asdecimal=True)

# Per-thousand rates keep four places (e.g. 18.2428 before rounding).
Rate = Numeric(12, 4, asdecimal=True)


def new_uuid() -> str:
    """Opaque primary key."""
    return str(uuid.uuid4())
