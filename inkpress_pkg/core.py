import os
import asyncio
import logging
from datetime import datetime

import requests

from .content import ContentLoader, slugify, parse_date, date_to_string
from .renderer import MarkdownRenderer
from .images import ImagePipeline
from .template_engine import TemplateEngine
from .pagination import iter_pages, format_date
from .sitewide import SitewideEmitter, write_text
from .models import Post
from .errors import StorageAccessFailure

PAGE_EXT = 'html'


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Total posts generated:",
            "Total listing pages generated:",
            "Total images converted to WebP:",
            "Generated:",
            "Building listing pages",
            "Writing post manifest",
            "Generating XML sitemap",
            "Generating robots.txt",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(log_dir=None):
    """
    Set up the ``Inkpress`` logger hierarchy root.

    Console output shows milestones and warnings; the log file under
    ``logs/`` keeps everything down to DEBUG.
    """
    logger = logging.getLogger('Inkpress')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        logs_dir = log_dir or os.path.join(os.getcwd(), 'logs')
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('inkpress_%Y-%m-%d_%H-%M-%S.log')
        file_handler = logging.FileHandler(os.path.join(logs_dir, log_filename))
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logger.addHandler(file_handler)

    return logger


class Inkpress:
    """Build the whole site from a content directory in one pass."""

    def __init__(self, config, session=None):
        self.config = config
        self.logger = logging.getLogger('Inkpress.Build')
        self.session = session or requests.Session()

        self.loader = ContentLoader(config)
        self.renderer = MarkdownRenderer()
        self.images = ImagePipeline(config, session=self.session)
        self.engine = TemplateEngine(config)
        self.sitewide = SitewideEmitter(config, self.engine)

        self.posts = []
        self.posts_generated = 0
        self.pages_generated = 0
        self.image_conversion_count = 0

    def create_output_dirs(self):
        for directory in (self.config.output_dir, self.config.posts_dir, self.config.images_dir):
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                raise StorageAccessFailure(directory, e)

    async def build_post(self, filepath):
        """Load, render and write one content item. Returns its Post."""
        metadata, body = self.loader.load(filepath)
        slug = slugify(metadata.title)

        content_html = await self.renderer.render_async(body)
        content_html, converted = await self.images.process(content_html)
        self.image_conversion_count += converted

        page = self.engine.render_post(metadata, slug, content_html)
        write_text(os.path.join(self.config.posts_dir, f'{slug}.{PAGE_EXT}'), page)

        self.logger.info(f"Generated: {slug}")
        return Post(
            title=metadata.title,
            date=date_to_string(metadata.date),
            slug=slug,
            path=f'/posts/{slug}',
        )

    async def build_posts(self):
        # Strictly one item at a time; the first failure stops the run
        for filepath in self.loader.content_files():
            post = await self.build_post(filepath)
            self.posts.append(post)
            self.posts_generated += 1

    def sort_posts(self):
        self.posts.sort(key=lambda post: parse_date(post.date), reverse=True)

    def build_listing_pages(self):
        """Write page/<n>/index.html for every page, and page 1 again as index.html."""
        self.logger.info("Building listing pages")
        current_year = datetime.now().year
        for page in iter_pages(self.posts, self.config.posts_per_page):
            posts_html = self.engine.render_fragment(
                'post_list.html',
                posts=[dict(post.to_dict(), display_date=format_date(post.date)) for post in page.posts],
            )
            pagination_html = self.engine.render_fragment('pagination.html', pagination=page.pagination)
            html = self.engine.render_index(posts_html, pagination_html, current_year)

            if page.number == 1:
                write_text(os.path.join(self.config.output_dir, f'index.{PAGE_EXT}'), html)
            write_text(os.path.join(self.config.output_dir, 'page', str(page.number), f'index.{PAGE_EXT}'), html)
            self.pages_generated += 1

    async def build(self):
        """Main build process."""
        self.logger.debug("Starting site build...")
        self.create_output_dirs()

        await self.build_posts()
        self.sort_posts()
        self.build_listing_pages()
        self.sitewide.write_manifest(self.posts)

        manifest = self.sitewide.read_manifest()
        self.sitewide.write_sitemap(manifest)
        self.sitewide.write_robots()

    def run(self):
        try:
            asyncio.run(self.build())
        finally:
            self.cleanup()

    def cleanup(self):
        """Close the HTTP session used for remote images."""
        self.session.close()
