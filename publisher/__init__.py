"""
Publisher Package
Contract descriptors, proxy deployment orchestration and reporting
"""

from .config import PublishConfig, parse_config
from .descriptors import DESCRIPTORS, ContractDescriptor, get_descriptor
from .orchestrator import DeployedPair, DeploymentStep, ProxyDeployer
from .report import PublishReport
from .runner import publish_one

__all__ = [
    'PublishConfig',
    'parse_config',
    'DESCRIPTORS',
    'ContractDescriptor',
    'get_descriptor',
    'DeployedPair',
    'DeploymentStep',
    'ProxyDeployer',
    'PublishReport',
    'publish_one',
]
