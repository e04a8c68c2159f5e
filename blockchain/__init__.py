"""
Blockchain Interaction Package
Handles address prediction, transaction submission, nonces and receipts
"""

from .address_predictor import (
    ARACHNID_CREATE2_FACTORY,
    derive_salt,
    predict_create2_address,
    predict_create_address,
)
from .nonce_manager import NonceManager
from .receipt_confirmer import ReceiptConfirmer
from .signing_identity import SigningIdentity
from .transaction_submitter import DeployResult, FeePolicy, TransactionSubmitter

__all__ = [
    'ARACHNID_CREATE2_FACTORY',
    'derive_salt',
    'predict_create2_address',
    'predict_create_address',
    'NonceManager',
    'ReceiptConfirmer',
    'SigningIdentity',
    'DeployResult',
    'FeePolicy',
    'TransactionSubmitter',
]
