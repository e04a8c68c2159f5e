"""
Utilities Package
RPC boundary and error taxonomy shared by the publisher
"""

from .exceptions import (
    CodeCheckError,
    ConfirmationTimeoutError,
    DeploymentRevertedError,
    InputError,
    MissingEventError,
    PublishError,
    RPCError,
    SubmissionError,
)
from .rpc_manager import RPCManager

__all__ = [
    'CodeCheckError',
    'ConfirmationTimeoutError',
    'DeploymentRevertedError',
    'InputError',
    'MissingEventError',
    'PublishError',
    'RPCError',
    'SubmissionError',
    'RPCManager',
]
