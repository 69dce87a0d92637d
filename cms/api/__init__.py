"""REST API for crawl jobs, demo data import and page editing."""
