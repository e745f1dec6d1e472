"""rightsledger.workflow -- Temporal.io revenue distribution rounds."""

from rightsledger.workflow.types import (
    ClaimantsInput as ClaimantsInput,
)
from rightsledger.workflow.types import (
    ClaimantsOutput as ClaimantsOutput,
)
from rightsledger.workflow.types import (
    DistributeInput as DistributeInput,
)
from rightsledger.workflow.types import (
    DistributeOutput as DistributeOutput,
)
from rightsledger.workflow.types import (
    DistributionRoundInput as DistributionRoundInput,
)
from rightsledger.workflow.types import (
    DistributionRoundResult as DistributionRoundResult,
)
from rightsledger.workflow.types import (
    RoundOutcome as RoundOutcome,
)
from rightsledger.workflow.types import (
    SettleClaimInput as SettleClaimInput,
)
from rightsledger.workflow.types import (
    SettleClaimOutput as SettleClaimOutput,
)
