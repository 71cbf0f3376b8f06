"""
Google Search Console Data Models

Stores site-level daily performance totals, one row per site per day.
"""
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Date, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from sitepulse.models.base import Base


class SearchConsoleDaily(Base):
    """Daily clicks/impressions/CTR/position for a site"""
    __tablename__ = "google_search_console_data"
    __table_args__ = (
        UniqueConstraint("site_id", "date", name="uq_gsc_data_site_date"),
    )

    id = Column(Integer, primary_key=True, index=True)

    site_id = Column(Integer, ForeignKey("sites.id", ondelete="CASCADE"), index=True, nullable=False)

    # Date
    date = Column(Date, index=True, nullable=False)

    # Performance metrics
    clicks = Column(Integer, default=0, nullable=False)
    impressions = Column(Integer, default=0, nullable=False)
    ctr = Column(Float, default=0.0, nullable=False)
    # Click-through rate, decimal 0-1
    position = Column(Float, default=0.0, nullable=False)
    # Average position in search results

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    # Refreshed on every upsert; drives cache staleness

    site = relationship("Site", back_populates="search_console_data")

    def __repr__(self):
        return f"<SearchConsoleDaily site={self.site_id} {self.date}>"
