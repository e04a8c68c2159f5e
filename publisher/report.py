"""
Publish Report
Structured result printed on success
"""

import json
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class PublishReport:
    factory: Optional[str] = None
    decimal_quoter: Optional[str] = None
    implementations: Dict[str, str] = field(default_factory=dict)
    proxies: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """Report fields, empty ones omitted"""
        out = {}
        if self.factory:
            out['factory'] = self.factory
        if self.decimal_quoter:
            out['decimal_quoter'] = self.decimal_quoter
        if self.implementations:
            out['implementations'] = dict(self.implementations)
        if self.proxies:
            out['proxies'] = dict(self.proxies)
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
