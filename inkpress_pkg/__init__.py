"""
Inkpress - a small static blog generator.

Inkpress turns a directory of Markdown files with YAML front matter into
static HTML: one page per post, paginated listing pages, a JSON post
manifest, sitemap.xml and robots.txt. Images referenced by posts are
cropped and converted to WebP.
"""

__version__ = "1.0.0"

from .core import Inkpress
from .settings import SiteConfig

__all__ = ['Inkpress', 'SiteConfig']
