"""
SQLAlchemy storage backend (SQLite or PostgreSQL)
"""
from datetime import date, datetime
from typing import Iterable, List, Optional, Set

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import sessionmaker

from sitepulse.models.base import SessionLocal
from sitepulse.models.site import Site
from sitepulse.models.search_console_data import SearchConsoleDaily
from sitepulse.stores.base import DataStore, MetricRecord, SiteRecord, SITE_FIELDS, dedupe_records
from sitepulse.utils.logger import log


def _to_site_record(site: Site) -> SiteRecord:
    return SiteRecord(
        id=site.id,
        name=site.name,
        domain=site.domain,
        category=site.category,
        search_console_url=site.search_console_url,
        owner_id=site.owner_id,
        created_at=site.created_at,
        updated_at=site.updated_at,
    )


def _to_metric_record(row: SearchConsoleDaily) -> MetricRecord:
    return MetricRecord(
        site_id=row.site_id,
        date=row.date,
        clicks=row.clicks,
        impressions=row.impressions,
        ctr=float(row.ctr or 0),
        position=float(row.position or 0),
        created_at=row.created_at,
    )


class SqlAlchemyStore(DataStore):
    """Sites and metrics in a relational database"""

    backend_name = "sql"

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self.session_factory = session_factory

    # -- sites -------------------------------------------------------------

    def list_sites(self) -> List[SiteRecord]:
        db = self.session_factory()
        try:
            sites = db.query(Site).order_by(Site.id).all()
            return [_to_site_record(s) for s in sites]
        finally:
            db.close()

    def get_site(self, site_id: int) -> Optional[SiteRecord]:
        db = self.session_factory()
        try:
            site = db.get(Site, site_id)
            return _to_site_record(site) if site else None
        finally:
            db.close()

    def create_site(self, **fields) -> SiteRecord:
        db = self.session_factory()
        try:
            site = Site(**{k: v for k, v in fields.items() if k in SITE_FIELDS})
            db.add(site)
            db.commit()
            db.refresh(site)
            return _to_site_record(site)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def update_site(self, site_id: int, **fields) -> Optional[SiteRecord]:
        db = self.session_factory()
        try:
            site = db.get(Site, site_id)
            if not site:
                return None
            for key, value in fields.items():
                if key in SITE_FIELDS:
                    setattr(site, key, value)
            site.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(site)
            return _to_site_record(site)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete_site(self, site_id: int) -> bool:
        db = self.session_factory()
        try:
            site = db.get(Site, site_id)
            if not site:
                return False
            # Explicit delete keeps the cascade working where FK enforcement is off
            db.execute(delete(SearchConsoleDaily).where(SearchConsoleDaily.site_id == site_id))
            db.delete(site)
            db.commit()
            return True
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # -- metrics -----------------------------------------------------------

    def get_existing_dates(self, site_id: int, start: date, end: date) -> Set[date]:
        db = self.session_factory()
        try:
            rows = db.execute(
                select(SearchConsoleDaily.date).where(
                    SearchConsoleDaily.site_id == site_id,
                    SearchConsoleDaily.date >= start,
                    SearchConsoleDaily.date <= end,
                )
            ).scalars().all()
            return set(rows)
        finally:
            db.close()

    def bulk_upsert(self, records: Iterable[MetricRecord]) -> int:
        records = dedupe_records(records)
        if not records:
            return 0

        now = datetime.utcnow()
        values = [
            {
                "site_id": r.site_id,
                "date": r.date,
                "clicks": r.clicks,
                "impressions": r.impressions,
                "ctr": r.ctr,
                "position": r.position,
                "created_at": now,
            }
            for r in records
        ]

        db = self.session_factory()
        try:
            table = SearchConsoleDaily.__table__
            if db.get_bind().dialect.name == "postgresql":
                insert_stmt = pg_insert(table).values(values)
            else:
                insert_stmt = sqlite_insert(table).values(values)
            stmt = insert_stmt.on_conflict_do_update(
                index_elements=[table.c.site_id, table.c.date],
                set_={
                    "clicks": insert_stmt.excluded.clicks,
                    "impressions": insert_stmt.excluded.impressions,
                    "ctr": insert_stmt.excluded.ctr,
                    "position": insert_stmt.excluded.position,
                    "created_at": insert_stmt.excluded.created_at,
                },
            )
            db.execute(stmt)
            db.commit()
            return len(values)
        except Exception as e:
            db.rollback()
            log.error(f"Error upserting Search Console data (batch failed): {e}")
            raise
        finally:
            db.close()

    def delete_older_than(self, site_id: int, cutoff: date) -> int:
        db = self.session_factory()
        try:
            result = db.execute(
                delete(SearchConsoleDaily).where(
                    SearchConsoleDaily.site_id == site_id,
                    SearchConsoleDaily.date < cutoff,
                )
            )
            db.commit()
            return int(result.rowcount or 0)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get_recent(self, site_id: int, limit: int) -> List[MetricRecord]:
        db = self.session_factory()
        try:
            rows = db.query(SearchConsoleDaily).filter(
                SearchConsoleDaily.site_id == site_id
            ).order_by(
                SearchConsoleDaily.date.desc()
            ).limit(limit).all()
            return [_to_metric_record(r) for r in rows]
        finally:
            db.close()

    def get_range(self, site_id: int, start: date, end: date, limit: int = 2000) -> List[MetricRecord]:
        db = self.session_factory()
        try:
            rows = db.query(SearchConsoleDaily).filter(
                SearchConsoleDaily.site_id == site_id,
                SearchConsoleDaily.date >= start,
                SearchConsoleDaily.date <= end,
            ).order_by(
                SearchConsoleDaily.date.asc()
            ).limit(limit).all()
            return [_to_metric_record(r) for r in rows]
        finally:
            db.close()

    def clear(self, site_id: Optional[int] = None) -> int:
        db = self.session_factory()
        try:
            stmt = delete(SearchConsoleDaily)
            if site_id is not None:
                stmt = stmt.where(SearchConsoleDaily.site_id == site_id)
            result = db.execute(stmt)
            db.commit()
            return int(result.rowcount or 0)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
