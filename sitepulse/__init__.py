"""SitePulse - Search Console metrics sync for SEO site dashboards"""

__version__ = "1.0.0"
