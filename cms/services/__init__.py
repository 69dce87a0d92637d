"""
Services for the cms application.

- image_pipeline: download and normalize remote images into uploads
- page_extractor: render a URL and extract title, content, images, metadata
- crawl_jobs: crawl job submission, lookup, listing and deletion
- crawl_importer: turn a completed crawl job into a draft page
- demo_importer: bulk import of a demo content document
- pages: interactive page create/update
- website_crawler: best-effort same-site multi-page crawl
"""
