"""
CMS Django application.

This app holds the content model (pages, posts, products, menus, settings,
media) together with the page crawler, the image rehosting pipeline and
the demo content importer.
"""

default_app_config = "cms.apps.CmsConfig"
