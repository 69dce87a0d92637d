"""
Demo Content Importer.

Bulk-imports a demo content document (the kind a theme ships as
demo/data.json) into the CMS. Every entity is upserted by its slug (settings
by key), so running the same document twice leaves one row per slug.

Phases run in a fixed order because later phases depend on earlier ones:
1. Images - rehosted locally; each success maps its placeholder token (or its
   URL) to the public URL and adds a Media library record
2. Product categories, then post categories - slug -> id maps are recorded
3. Products, then posts - categorySlug is resolved through those maps
4. Pages - isHomepage is taken as given; the bulk path does not enforce a
   single homepage
5. Menus
6. Settings - stored as {"value": ...}

Placeholder tokens are replaced in string leaves only, right before each
entity is written. A failing item is logged with its slug or URL, counted in
ImportResult.failed and skipped; it never aborts the run.
"""

import json
import logging
from dataclasses import dataclass, field, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from asgiref.sync import async_to_sync
from django.conf import settings
from django.utils import timezone

from cms.exceptions import NotFoundError, ValidationError
from cms.models import (
    ContentStatus,
    Media,
    Menu,
    Page,
    Post,
    PostCategory,
    Product,
    ProductCategory,
    Setting,
)
from cms.persistence import ContentRepository
from cms.services.image_pipeline import ImagePipeline, ImageRequest, RehostedImage
from cms.utils import derive_slug, substitute_placeholders

logger = logging.getLogger(__name__)


# =============================================================================
# Document records
# =============================================================================


@dataclass
class DemoImage:
    url: str
    placeholder: Optional[str] = None
    filename: Optional[str] = None
    alt: str = ""
    original_name: Optional[str] = None

    @property
    def token(self) -> str:
        """Text that content uses to reference this image."""
        return self.placeholder or self.url

    @property
    def is_remote(self) -> bool:
        return self.url.startswith(("http://", "https://"))


@dataclass
class DemoCategory:
    name: str
    slug: Optional[str] = None
    description: str = ""
    image: Optional[str] = None
    sort_order: int = 0


@dataclass
class DemoProduct:
    name: str
    slug: Optional[str] = None
    short_desc: str = ""
    description: Any = None
    price: Any = 0
    sale_price: Any = None
    sku: Optional[str] = None
    stock: int = 0
    images: List[str] = field(default_factory=list)
    is_featured: bool = False
    specifications: Dict[str, Any] = field(default_factory=dict)
    seo_title: Optional[str] = None
    seo_desc: Optional[str] = None
    category_slug: Optional[str] = None


@dataclass
class DemoPost:
    title: str
    slug: Optional[str] = None
    content: Any = None
    excerpt: str = ""
    featured_image: Optional[str] = None
    is_featured: bool = False
    tags: List[str] = field(default_factory=list)
    seo_title: Optional[str] = None
    seo_desc: Optional[str] = None
    category_slug: Optional[str] = None


@dataclass
class DemoPage:
    title: str
    slug: Optional[str] = None
    content: Any = None
    template: str = "page"
    excerpt: str = ""
    featured_image: Optional[str] = None
    is_homepage: bool = False
    seo_title: Optional[str] = None
    seo_desc: Optional[str] = None


@dataclass
class DemoMenu:
    name: str
    slug: Optional[str] = None
    items: List[Any] = field(default_factory=list)
    location: Optional[str] = None


# JSON key -> record attribute; keys not listed are ignored
CAMEL_CASE_KEYS = {
    "originalName": "original_name",
    "sortOrder": "sort_order",
    "shortDesc": "short_desc",
    "salePrice": "sale_price",
    "isFeatured": "is_featured",
    "seoTitle": "seo_title",
    "seoDesc": "seo_desc",
    "categorySlug": "category_slug",
    "featuredImage": "featured_image",
    "isHomepage": "is_homepage",
}

STRING_ATTRIBUTES = {
    "placeholder", "filename", "alt", "original_name", "slug",
    "category_slug", "featured_image", "image", "template", "location",
}
LIST_ATTRIBUTES = {"images", "tags", "items"}


def _wrong_type_attribute(kwargs: Dict[str, Any]) -> Optional[str]:
    for attribute, value in kwargs.items():
        if attribute in STRING_ATTRIBUTES and not isinstance(value, str):
            return attribute
        if attribute in LIST_ATTRIBUTES and not isinstance(value, list):
            return attribute
    return None


def _parse_records(raw: Any, record_cls: Type, kind: str, required: str) -> Tuple[List[Any], int]:
    """
    Parse one array of the document.

    Returns:
        (records, number of malformed items skipped)

    Raises:
        ValidationError: The array itself is not a list
    """
    if raw is None:
        return [], 0
    if not isinstance(raw, list):
        raise ValidationError(f"'{kind}' must be a list")

    attributes = {f.name for f in fields(record_cls)}
    records = []
    skipped = 0

    for index, item in enumerate(raw):
        value = item.get(required) if isinstance(item, dict) else None
        if not isinstance(value, str) or not value.strip():
            logger.warning(f"Skipping {kind}[{index}]: missing '{required}'")
            skipped += 1
            continue

        kwargs = {}
        for key, item_value in item.items():
            attribute = CAMEL_CASE_KEYS.get(key, key)
            if attribute in attributes and item_value is not None:
                kwargs[attribute] = item_value

        wrong = _wrong_type_attribute(kwargs)
        if wrong is not None:
            logger.warning(f"Skipping {kind}[{index}]: '{wrong}' has the wrong type")
            skipped += 1
            continue
        records.append(record_cls(**kwargs))

    return records, skipped


@dataclass
class DemoDataDocument:
    """A demo content document, validated at load time."""

    images: List[DemoImage] = field(default_factory=list)
    product_categories: List[DemoCategory] = field(default_factory=list)
    post_categories: List[DemoCategory] = field(default_factory=list)
    products: List[DemoProduct] = field(default_factory=list)
    posts: List[DemoPost] = field(default_factory=list)
    pages: List[DemoPage] = field(default_factory=list)
    menus: List[DemoMenu] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    # Directory that relative (bundled) image paths are resolved against
    base_dir: Optional[Path] = None
    # Items dropped during parsing: no name/title/url, or a field of the wrong type
    skipped_items: int = 0

    @classmethod
    def from_dict(cls, data: Any, base_dir: Optional[Path] = None) -> "DemoDataDocument":
        """
        Raises:
            ValidationError: The document is not an object, or one of its
                sections has the wrong type
        """
        if not isinstance(data, dict):
            raise ValidationError("Demo data document must be a JSON object")

        document = cls(base_dir=base_dir)
        sections = [
            ("images", "images", DemoImage, "url"),
            ("productCategories", "product_categories", DemoCategory, "name"),
            ("postCategories", "post_categories", DemoCategory, "name"),
            ("products", "products", DemoProduct, "name"),
            ("posts", "posts", DemoPost, "title"),
            ("pages", "pages", DemoPage, "title"),
            ("menus", "menus", DemoMenu, "name"),
        ]
        for key, attribute, record_cls, required in sections:
            records, skipped = _parse_records(data.get(key), record_cls, key, required)
            setattr(document, attribute, records)
            document.skipped_items += skipped

        raw_settings = data.get("settings")
        if raw_settings is not None and not isinstance(raw_settings, dict):
            raise ValidationError("'settings' must be an object")
        document.settings = raw_settings or {}

        return document


def load_demo_document_file(path: Union[str, Path]) -> DemoDataDocument:
    """
    Load a demo document from a JSON file.

    Raises:
        NotFoundError: The file does not exist
        ValidationError: The file is not valid JSON or not a valid document
    """
    path = Path(path)
    if not path.is_file():
        raise NotFoundError(f"Demo data file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Demo data file is not valid JSON: {e}")

    return DemoDataDocument.from_dict(data, base_dir=path.parent)


def load_theme_demo_document(theme_slug: str) -> DemoDataDocument:
    """
    Load the demo document bundled with a theme.

    Raises:
        ValidationError: theme_slug is not a plain slug
        NotFoundError: The theme ships no demo data
    """
    if not theme_slug or derive_slug(theme_slug) != theme_slug:
        raise ValidationError("Invalid theme")

    themes_dir = Path(getattr(settings, "CMS_THEMES_DIR", "themes"))
    path = themes_dir / theme_slug / "demo" / "data.json"
    if not path.is_file():
        raise NotFoundError("No demo data available for this theme")

    return load_demo_document_file(path)


# =============================================================================
# Import run
# =============================================================================


@dataclass
class ImportResult:
    """Per-kind success counters for one import run."""

    pages: int = 0
    images: int = 0
    menus: int = 0
    settings: int = 0
    post_categories: int = 0
    posts: int = 0
    product_categories: int = 0
    products: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "pages": self.pages,
            "images": self.images,
            "menus": self.menus,
            "settings": self.settings,
            "postCategories": self.post_categories,
            "posts": self.posts,
            "productCategories": self.product_categories,
            "products": self.products,
            "failed": self.failed,
        }


@dataclass
class ImportContext:
    """State shared by the phases of a single import run."""

    acting_user: Any = None
    image_map: Dict[str, str] = field(default_factory=dict)
    product_category_ids: Dict[str, int] = field(default_factory=dict)
    post_category_ids: Dict[str, int] = field(default_factory=dict)
    result: ImportResult = field(default_factory=ImportResult)

    def substitute(self, value: Any) -> Any:
        return substitute_placeholders(value, self.image_map)


def _to_decimal(value: Any, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} is not a number: {value!r}")


class DemoImporter:
    """Runs the import phases for one document."""

    def __init__(
        self,
        image_pipeline: Optional[ImagePipeline] = None,
        repository: Optional[ContentRepository] = None,
    ):
        self.image_pipeline = image_pipeline or ImagePipeline()
        self.repository = repository or ContentRepository()

    def run(
        self,
        document: DemoDataDocument,
        acting_user=None,
        on_progress: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> ImportResult:
        context = ImportContext(acting_user=acting_user)
        context.result.failed = document.skipped_items

        logger.info(
            f"Importing demo data: {len(document.images)} images, "
            f"{len(document.products)} products, {len(document.posts)} posts, "
            f"{len(document.pages)} pages"
        )

        self._import_images(context, document, on_progress)
        self._import_categories(
            context, ProductCategory, document.product_categories,
            context.product_category_ids, "product_categories",
        )
        self._import_categories(
            context, PostCategory, document.post_categories,
            context.post_category_ids, "post_categories",
        )
        self._import_products(context, document.products)
        self._import_posts(context, document.posts)
        self._import_pages(context, document.pages)
        self._import_menus(context, document.menus)
        self._import_settings(context, document.settings)

        logger.info(f"Demo import finished: {context.result.as_dict()}")
        return context.result

    # -------------------------------------------------------------------------
    # Phase 1: images
    # -------------------------------------------------------------------------

    def _import_images(self, context: ImportContext, document: DemoDataDocument, on_progress):
        if not document.images:
            return

        remote = [image for image in document.images if image.is_remote]
        remote_results = async_to_sync(self.image_pipeline.rehost_images)(
            [ImageRequest(url=image.url, filename=image.filename) for image in remote],
            on_progress=on_progress,
        )
        results_by_id = {id(image): result for image, result in zip(remote, remote_results)}

        for image in document.images:
            result = results_by_id.get(id(image))
            if result is None:
                result = self._copy_bundled_image(document, image)
            self._record_image(context, image, result)

    def _copy_bundled_image(self, document: DemoDataDocument, image: DemoImage) -> RehostedImage:
        if document.base_dir is None:
            return RehostedImage(
                original_url=image.url,
                error_message="Local image paths need a demo data file or theme",
            )
        base_dir = document.base_dir.resolve()
        source = (base_dir / image.url).resolve()
        if base_dir not in source.parents:
            return RehostedImage(original_url=image.url, error_message="Image path escapes the theme")
        return self.image_pipeline.copy_local_image(source, image.filename)

    def _record_image(self, context: ImportContext, image: DemoImage, result: RehostedImage):
        if not result.success:
            logger.error(f"Failed to rehost image {image.url}: {result.error_message}")
            context.result.failed += 1
            return

        context.image_map[image.token] = result.public_url

        try:
            self.repository.create(
                Media,
                {
                    "filename": result.filename,
                    "original_name": image.original_name or image.filename or result.filename,
                    "path": result.stored_path,
                    "url": result.public_url,
                    "mimetype": result.mimetype,
                    "size": result.size,
                    "width": result.width,
                    "height": result.height,
                    "alt": image.alt or "",
                    "uploaded_by": context.acting_user,
                },
            )
        except Exception as e:
            logger.error(f"Failed to record media for image {image.url}: {e}")
            context.result.failed += 1
            return

        context.result.images += 1

    # -------------------------------------------------------------------------
    # Phase 2: categories
    # -------------------------------------------------------------------------

    def _import_categories(
        self,
        context: ImportContext,
        model,
        categories: List[DemoCategory],
        id_map: Dict[str, int],
        counter: str,
    ):
        for category in categories:
            slug = category.slug or derive_slug(category.name)
            try:
                if not slug:
                    raise ValidationError(f"Category {category.name!r} has no usable slug")
                values = {
                    "name": category.name,
                    "description": category.description or "",
                    "image": context.substitute(category.image) or "",
                    "sort_order": category.sort_order or 0,
                }
                instance, _ = self.repository.upsert_by_key(model, "slug", slug, values, values)
                id_map[slug] = instance.id
                setattr(context.result, counter, getattr(context.result, counter) + 1)
            except Exception as e:
                logger.error(f"Failed to import {model._meta.verbose_name} {slug or category.name}: {e}")
                context.result.failed += 1

    # -------------------------------------------------------------------------
    # Phase 3: category-dependent entities
    # -------------------------------------------------------------------------

    def _import_products(self, context: ImportContext, products: List[DemoProduct]):
        for product in products:
            slug = product.slug or derive_slug(product.name)
            try:
                if not slug:
                    raise ValidationError(f"Product {product.name!r} has no usable slug")
                values = {
                    "name": product.name,
                    "short_desc": product.short_desc or "",
                    "description": context.substitute(product.description)
                    if product.description is not None else "",
                    "price": _to_decimal(product.price or 0, "price"),
                    "sale_price": _to_decimal(product.sale_price, "salePrice"),
                    "sku": product.sku or "",
                    "stock": int(product.stock or 0),
                    "images": [context.substitute(image) for image in product.images or []],
                    "status": ContentStatus.PUBLISHED,
                    "is_featured": bool(product.is_featured),
                    "specifications": context.substitute(product.specifications or {}),
                    "seo_title": product.seo_title or product.name,
                    "seo_desc": product.seo_desc or "",
                    "category_id": context.product_category_ids.get(product.category_slug)
                    if product.category_slug else None,
                }
                self.repository.upsert_by_key(Product, "slug", slug, values, values)
                context.result.products += 1
            except Exception as e:
                logger.error(f"Failed to import product {slug or product.name}: {e}")
                context.result.failed += 1

    def _import_posts(self, context: ImportContext, posts: List[DemoPost]):
        for post in posts:
            slug = post.slug or derive_slug(post.title)
            try:
                if not slug:
                    raise ValidationError(f"Post {post.title!r} has no usable slug")
                values = {
                    "title": post.title,
                    "content": context.substitute(post.content) if post.content is not None else {},
                    "excerpt": post.excerpt or "",
                    "featured_image": context.substitute(post.featured_image) or "",
                    "status": ContentStatus.PUBLISHED,
                    "is_featured": bool(post.is_featured),
                    "tags": list(post.tags or []),
                    "seo_title": post.seo_title or post.title,
                    "seo_desc": post.seo_desc or post.excerpt or "",
                    "category_id": context.post_category_ids.get(post.category_slug)
                    if post.category_slug else None,
                }
                create_values = {
                    **values,
                    "author": context.acting_user,
                    "published_at": timezone.now(),
                }
                self.repository.upsert_by_key(Post, "slug", slug, create_values, values)
                context.result.posts += 1
            except Exception as e:
                logger.error(f"Failed to import post {slug or post.title}: {e}")
                context.result.failed += 1

    # -------------------------------------------------------------------------
    # Phases 4-6: pages, menus, settings
    # -------------------------------------------------------------------------

    def _import_pages(self, context: ImportContext, pages: List[DemoPage]):
        for page in pages:
            slug = page.slug or derive_slug(page.title)
            try:
                if not slug:
                    raise ValidationError(f"Page {page.title!r} has no usable slug")
                values = {
                    "title": page.title,
                    "content": context.substitute(page.content) if page.content is not None else {},
                    "template": page.template or "page",
                    "excerpt": page.excerpt or "",
                    "featured_image": context.substitute(page.featured_image) or "",
                    "status": ContentStatus.PUBLISHED,
                    "is_homepage": bool(page.is_homepage),
                    "seo_title": page.seo_title or page.title,
                    "seo_desc": page.seo_desc or page.excerpt or "",
                }
                create_values = {**values, "author": context.acting_user}
                self.repository.upsert_by_key(Page, "slug", slug, create_values, values)
                context.result.pages += 1
            except Exception as e:
                logger.error(f"Failed to import page {slug or page.title}: {e}")
                context.result.failed += 1

    def _import_menus(self, context: ImportContext, menus: List[DemoMenu]):
        for menu in menus:
            slug = menu.slug or derive_slug(menu.name)
            try:
                if not slug:
                    raise ValidationError(f"Menu {menu.name!r} has no usable slug")
                values = {
                    "name": menu.name,
                    "items": context.substitute(menu.items or []),
                    "location": menu.location or "",
                }
                self.repository.upsert_by_key(Menu, "slug", slug, values, values)
                context.result.menus += 1
            except Exception as e:
                logger.error(f"Failed to import menu {slug or menu.name}: {e}")
                context.result.failed += 1

    def _import_settings(self, context: ImportContext, site_settings: Dict[str, Any]):
        for key, value in site_settings.items():
            try:
                values = {"value": {"value": context.substitute(value)}}
                self.repository.upsert_by_key(Setting, "key", key, values, values)
                context.result.settings += 1
            except Exception as e:
                logger.error(f"Failed to import setting {key}: {e}")
                context.result.failed += 1


def import_demo_document(
    document: Union[DemoDataDocument, Dict[str, Any]],
    acting_user=None,
    image_pipeline: Optional[ImagePipeline] = None,
    on_progress: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> ImportResult:
    """
    Import a demo document (parsed or raw dict).

    Raises:
        ValidationError: The raw document is malformed at the top level
    """
    if not isinstance(document, DemoDataDocument):
        document = DemoDataDocument.from_dict(document)
    return DemoImporter(image_pipeline=image_pipeline).run(
        document, acting_user=acting_user, on_progress=on_progress
    )
