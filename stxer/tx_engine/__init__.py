"""Transaction engine: nonce allocation, materialization and batch encoding."""

from stxer.tx_engine.encoder import encode_batch
from stxer.tx_engine.materializer import Entry, TransactionMaterializer
from stxer.tx_engine.nonce_manager import NonceManager
from stxer.tx_engine.transactions import UnsignedTransaction

__all__ = [
    "Entry",
    "NonceManager",
    "TransactionMaterializer",
    "UnsignedTransaction",
    "encode_batch",
]
