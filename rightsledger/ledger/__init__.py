"""rightsledger.ledger: issuance pricing, unit book, distributions, instruments, registry."""

from rightsledger.ledger.book import BookState as BookState
from rightsledger.ledger.book import UnitBook as UnitBook
from rightsledger.ledger.distribution import DistributionLedger as DistributionLedger
from rightsledger.ledger.distribution import DistributionState as DistributionState
from rightsledger.ledger.distribution import claim_share as claim_share
from rightsledger.ledger.distribution import funded_amount as funded_amount
from rightsledger.ledger.instrument import Instrument as Instrument
from rightsledger.ledger.issuance import compute_fee as compute_fee
from rightsledger.ledger.issuance import derive_terms as derive_terms
from rightsledger.ledger.issuance import quote_investment as quote_investment
from rightsledger.ledger.issuance import units_for as units_for
from rightsledger.ledger.registry import REGISTRY_SOURCE_ID as REGISTRY_SOURCE_ID
from rightsledger.ledger.registry import InstrumentRegistry as InstrumentRegistry
