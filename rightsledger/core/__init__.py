"""rightsledger.core: public API for all core types."""

from rightsledger.core.amounts import (
    LEDGER_DECIMAL_CONTEXT as LEDGER_DECIMAL_CONTEXT,
)
from rightsledger.core.amounts import (
    NonEmptyStr as NonEmptyStr,
)
from rightsledger.core.amounts import (
    mul_div as mul_div,
)
from rightsledger.core.amounts import (
    percentage as percentage,
)
from rightsledger.core.errors import (
    ExternalTransferError as ExternalTransferError,
)
from rightsledger.core.errors import (
    FieldViolation as FieldViolation,
)
from rightsledger.core.errors import (
    InvariantViolationError as InvariantViolationError,
)
from rightsledger.core.errors import (
    LedgerError as LedgerError,
)
from rightsledger.core.errors import (
    OperationError as OperationError,
)
from rightsledger.core.errors import (
    PersistenceError as PersistenceError,
)
from rightsledger.core.errors import (
    PreconditionViolation as PreconditionViolation,
)
from rightsledger.core.errors import (
    ValidationError as ValidationError,
)
from rightsledger.core.result import (
    Err as Err,
)
from rightsledger.core.result import (
    Ok as Ok,
)
from rightsledger.core.result import (
    Result as Result,
)
from rightsledger.core.result import (
    unwrap as unwrap,
)
from rightsledger.core.serialization import (
    canonical_bytes as canonical_bytes,
)
from rightsledger.core.serialization import (
    derive_id as derive_id,
)
from rightsledger.core.types import (
    Clock as Clock,
)
from rightsledger.core.types import (
    Period as Period,
)
from rightsledger.core.types import (
    UtcDatetime as UtcDatetime,
)
