import os
import json
import logging
from datetime import datetime, timezone

from .content import iso_timestamp
from .errors import ManifestReadbackFailure, StorageAccessFailure

MANIFEST_FILE = 'posts.json'
SITEMAP_FILE = 'sitemap.xml'
ROBOTS_FILE = 'robots.txt'


def write_text(path, content):
    """Write ``content`` to ``path``, creating parent directories."""
    try:
        os.makedirs(os.path.dirname(path) or '.', exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
    except (IOError, OSError) as e:
        raise StorageAccessFailure(path, e)


class SitewideEmitter:
    """Write the post manifest, sitemap.xml and robots.txt."""

    def __init__(self, config, engine):
        self.config = config
        self.engine = engine
        self.output_dir = config.output_dir
        self.logger = logging.getLogger('Inkpress.SitewideEmitter')

    @property
    def manifest_path(self):
        return os.path.join(self.output_dir, MANIFEST_FILE)

    def write_manifest(self, posts):
        """Serialize the date-sorted posts as a JSON list."""
        manifest = json.dumps([post.to_dict() for post in posts], indent=2, ensure_ascii=False)
        write_text(self.manifest_path, manifest)
        self.logger.info(f"Writing post manifest with {len(posts)} posts")

    def read_manifest(self):
        """Re-read the manifest from disk."""
        try:
            with open(self.manifest_path, 'r', encoding='utf-8') as f:
                posts = json.load(f)
        except (IOError, OSError, json.JSONDecodeError) as e:
            raise ManifestReadbackFailure(f"Cannot read post manifest {self.manifest_path}: {e}")
        if not isinstance(posts, list):
            raise ManifestReadbackFailure(f"Post manifest {self.manifest_path} is not a list")
        return posts

    def write_sitemap(self, posts, now=None):
        """
        Write sitemap.xml: the site root plus one entry per manifest post.

        Posts whose date cannot be parsed get the build time as lastmod.
        """
        now = now or datetime.now(timezone.utc)
        root_lastmod = iso_timestamp(now)
        entries = []
        for post in posts:
            try:
                slug = post['slug']
            except (KeyError, TypeError):
                raise ManifestReadbackFailure(f"Malformed manifest entry: {post!r}")
            entries.append({
                'loc': f"{self.config.site_url}/posts/{slug}",
                'lastmod': iso_timestamp(post.get('date')) or root_lastmod,
            })

        sitemap = self.engine.render_fragment(
            SITEMAP_FILE,
            site_url=self.config.site_url,
            root_lastmod=root_lastmod,
            entries=entries,
        )
        write_text(os.path.join(self.output_dir, SITEMAP_FILE), sitemap)
        self.logger.info("Generating XML sitemap")

    def write_robots(self):
        robots = (
            "User-agent: *\n"
            "Allow: /\n"
            f"Sitemap: {self.config.site_url}/sitemap.xml\n"
        )
        write_text(os.path.join(self.output_dir, ROBOTS_FILE), robots)
        self.logger.info("Generating robots.txt")
