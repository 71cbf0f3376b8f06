"""
Base connector classes for metrics providers
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from datetime import datetime


class BaseConnector(ABC):
    """Base class for all data source connectors"""

    def __init__(self, name: str):
        self.name = name
        self.last_fetch = None
        self.fetch_count = 0
        self.error_count = 0

    @abstractmethod
    async def connect(self) -> bool:
        """Establish connection to data source"""
        pass

    @abstractmethod
    async def validate_connection(self) -> bool:
        """Validate connection is working"""
        pass

    def record_fetch(self, success: bool):
        """Update fetch counters after a provider call"""
        self.fetch_count += 1
        if success:
            self.last_fetch = datetime.utcnow()
        else:
            self.error_count += 1

    def get_status(self) -> Dict[str, Any]:
        """Get connector status"""
        return {
            "name": self.name,
            "last_fetch": self.last_fetch.isoformat() if self.last_fetch else None,
            "fetch_count": self.fetch_count,
            "error_count": self.error_count,
            "error_rate": self.error_count / max(self.fetch_count, 1),
        }


class MetricsProvider(BaseConnector):
    """A source of daily aggregated search metrics"""

    @abstractmethod
    async def get_aggregated_data(
        self,
        site_identifier: Optional[str],
        days: int,
        fallback_domain: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Daily totals for the `days` calendar days ending today

        Returns:
            List of {date: 'YYYY-MM-DD', clicks, impressions, ctr, position}
        """
        pass
