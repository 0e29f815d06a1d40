import os
import re
import logging
from datetime import datetime, date, timezone

import yaml

from .errors import MissingRequiredField, StorageAccessFailure
from .models import Metadata

CONTENT_EXTENSIONS = ('.md', '.markdown')

_NON_ALNUM_RUN = re.compile(r'[^a-z0-9]+')

DATE_FORMATS = [
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d',
    '%Y/%m/%d',
    '%m/%d/%Y',
    '%B %d, %Y',
    '%b %d, %Y',
    '%B %d %Y',
    '%b %d %Y',
    '%d %B %Y',
    '%d %b %Y',
]

logger = logging.getLogger('Inkpress.ContentLoader')


def slugify(title):
    """Create a URL-friendly slug from a title."""
    slug = _NON_ALNUM_RUN.sub('-', str(title).lower())
    return slug.strip('-')


def parse_date(value):
    """Parse a front matter date. Unknown or missing dates sort as oldest."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = None
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(value.strip(), fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
            except ValueError:
                return datetime.min
    else:
        return datetime.min

    # Naive UTC so aware and naive dates compare
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def iso_timestamp(value):
    """
    Format a date as a UTC timestamp with millisecond precision,
    e.g. ``2024-01-05T00:00:00.000Z``. Naive values are taken as UTC.

    Returns an empty string for dates that cannot be parsed.
    """
    parsed = parse_date(value)
    if parsed == datetime.min:
        return ''
    return parsed.strftime('%Y-%m-%dT%H:%M:%S.') + f'{parsed.microsecond // 1000:03d}Z'


def date_to_string(value):
    """Render a front matter date the way it is stored in the manifest."""
    if value is None:
        return ''
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


class ContentLoader:
    """Read content files and split them into metadata and markdown body."""

    def __init__(self, config):
        self.config = config
        self.content_dir = config.content_dir

    def content_files(self):
        """Return the content files of the content directory, in name order."""
        try:
            names = sorted(os.listdir(self.content_dir))
        except OSError as e:
            raise StorageAccessFailure(self.content_dir, e)
        return [
            os.path.join(self.content_dir, name)
            for name in names
            if name.lower().endswith(CONTENT_EXTENSIONS)
            and os.path.isfile(os.path.join(self.content_dir, name))
        ]

    def read(self, filepath):
        try:
            with open(filepath, 'r', encoding='utf-8') as f:
                return f.read()
        except (IOError, OSError) as e:
            raise StorageAccessFailure(filepath, e)

    def split_front_matter(self, source, filepath=None):
        """Split raw file contents into a metadata dict and a body string."""
        if not source.lstrip().startswith('---'):
            return {}, source

        parts = source.lstrip().split('---', 2)
        if len(parts) < 3:
            return {}, source

        try:
            raw = yaml.safe_load(parts[1]) or {}
        except yaml.YAMLError as e:
            logger.error(f"Invalid YAML front matter in {filepath}: {e}")
            raw = {}
        if not isinstance(raw, dict):
            logger.warning(f"Front matter in {filepath} is not a mapping, ignoring it")
            raw = {}
        return raw, parts[2].lstrip('\n')

    def load(self, filepath):
        """
        Load one content file.

        Returns:
            (Metadata, body) tuple

        Raises:
            MissingRequiredField: when the front matter has no title
            StorageAccessFailure: when the file cannot be read
        """
        raw, body = self.split_front_matter(self.read(filepath), filepath)

        title = raw.pop('title', None)
        if title is None or not str(title).strip():
            raise MissingRequiredField('title', filepath)

        camel_image = raw.pop('featuredImage', None)
        snake_image = raw.pop('featured_image', None)
        featured_image = camel_image if camel_image is not None else snake_image
        metadata = Metadata(
            title=str(title),
            date=raw.pop('date', None),
            author=raw.pop('author', None),
            description=raw.pop('description', None),
            keywords=raw.pop('keywords', None),
            featured_image=featured_image,
            extra=raw,
        )
        logger.debug(f"Loaded {filepath}: {metadata.title}")
        return metadata, body
