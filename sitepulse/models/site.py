"""
Site Model

A site tracked in the dashboard, optionally linked to a Search Console property.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from sitepulse.models.base import Base


class Site(Base):
    """Tracked website"""
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String, nullable=False)
    domain = Column(String, index=True, nullable=False)
    category = Column(String, nullable=True)

    search_console_url = Column(String, nullable=True)
    # sc-domain:example.com, https://example.com/ or a Search Console UI link

    owner_id = Column(Integer, nullable=True, index=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    search_console_data = relationship(
        "SearchConsoleDaily",
        back_populates="site",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Site {self.id} {self.domain}>"
