from sagasynth.chain.client import BOUNTY_CREATED_EVENT, METADATA_MINTED_EVENT, ChainClient
from sagasynth.chain.types import MetadataRecord, TxResult
from sagasynth.chain.wallet import Wallet, format_ether, parse_ether

__all__ = [
    "BOUNTY_CREATED_EVENT",
    "METADATA_MINTED_EVENT",
    "ChainClient",
    "MetadataRecord",
    "TxResult",
    "Wallet",
    "format_ether",
    "parse_ether",
]
