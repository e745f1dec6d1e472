"""rightsledger.instrument: instrument types, events, access, compliance, guard."""

from rightsledger.instrument.access import Capability as Capability
from rightsledger.instrument.access import RoleTable as RoleTable
from rightsledger.instrument.access import require_capability as require_capability
from rightsledger.instrument.compliance import ComplianceGate as ComplianceGate
from rightsledger.instrument.events import ActivationChanged as ActivationChanged
from rightsledger.instrument.events import AuditEvent as AuditEvent
from rightsledger.instrument.events import InstrumentCreated as InstrumentCreated
from rightsledger.instrument.events import Invested as Invested
from rightsledger.instrument.events import MetadataUpdated as MetadataUpdated
from rightsledger.instrument.events import Paused as Paused
from rightsledger.instrument.events import PlatformFeeCollected as PlatformFeeCollected
from rightsledger.instrument.events import ProceedsWithdrawn as ProceedsWithdrawn
from rightsledger.instrument.events import RevenueClaimed as RevenueClaimed
from rightsledger.instrument.events import RevenueDistributed as RevenueDistributed
from rightsledger.instrument.events import TermsAccepted as TermsAccepted
from rightsledger.instrument.events import UnitsBurned as UnitsBurned
from rightsledger.instrument.events import UnitsTransferred as UnitsTransferred
from rightsledger.instrument.events import Unpaused as Unpaused
from rightsledger.instrument.guard import BURN_ACCOUNT as BURN_ACCOUNT
from rightsledger.instrument.guard import TransferGuard as TransferGuard
from rightsledger.instrument.schedule import add_period as add_period
from rightsledger.instrument.schedule import distribution_schedule as distribution_schedule
from rightsledger.instrument.schedule import (
    is_distribution_overdue as is_distribution_overdue,
)
from rightsledger.instrument.schedule import next_distribution_due as next_distribution_due
from rightsledger.instrument.types import ClaimBasis as ClaimBasis
from rightsledger.instrument.types import ClaimPayout as ClaimPayout
from rightsledger.instrument.types import Distribution as Distribution
from rightsledger.instrument.types import DistributionMode as DistributionMode
from rightsledger.instrument.types import InstrumentInfo as InstrumentInfo
from rightsledger.instrument.types import InvestmentQuote as InvestmentQuote
from rightsledger.instrument.types import IssuanceTerms as IssuanceTerms
from rightsledger.instrument.types import PushFailure as PushFailure
from rightsledger.instrument.types import PushReport as PushReport
