import os
import re
import logging

from jinja2 import Environment, PackageLoader

from .content import iso_timestamp
from .errors import StorageAccessFailure

POST_TEMPLATE = 'post-template.html'
INDEX_TEMPLATE = 'index-template.html'

PLACEHOLDER = '{{{{{}}}}}'
UNRESOLVED_PLACEHOLDER = re.compile(r'{{\s*[A-Za-z_]+\s*}}')

CONTENT_MARKER = '{{content}}'
HEAD_MARKER = '</head>'
HEAD_EXTRAS = """
                <meta http-equiv="Cache-Control" content="public, max-age=31536000">
                <link rel="preload" as="style" href="/assets/styles.css">
                <link rel="preload" as="style" href="/assets/dark-mode.css">
                </head>
            """


def substitute(template, values):
    """
    Replace every ``{{name}}`` in ``template`` with ``values[name]``.

    Values are inserted verbatim. Nothing is escaped, so HTML in metadata
    ends up in the page as-is.
    """
    for name, value in values.items():
        template = template.replace(PLACEHOLDER.format(name), str(value))
    return template


class TemplateEngine:
    """Fill the user's page templates and the built-in listing fragments."""

    def __init__(self, config):
        self.config = config
        self.templates_dir = config.templates_dir
        self.logger = logging.getLogger('Inkpress.TemplateEngine')
        self.post_template = self.read_template(POST_TEMPLATE)
        self.index_template = self.read_template(INDEX_TEMPLATE)
        self.env = Environment(
            loader=PackageLoader('inkpress_pkg', 'templates'),
            autoescape=False,
            trim_blocks=True,
        )

    def read_template(self, name):
        path = os.path.join(self.templates_dir, name)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (IOError, OSError) as e:
            raise StorageAccessFailure(path, e)

    def render_post(self, metadata, slug, content_html):
        keywords = metadata.keywords
        if isinstance(keywords, (list, tuple)):
            keywords = ', '.join(str(k) for k in keywords)
        values = {
            'siteName': self.config.site_name,
            'title': metadata.title,
            'description': metadata.description or '',
            'author': metadata.author or self.config.default_author,
            'keywords': keywords or '',
            'featuredImage': metadata.featured_image or self.config.default_image,
            'url': f"{self.config.site_url}/posts/{slug}",
            'isoDate': iso_timestamp(metadata.date),
        }
        page = substitute(self.post_template, values)
        leftover = [p for p in UNRESOLVED_PLACEHOLDER.findall(page) if p != CONTENT_MARKER]
        if leftover:
            self.logger.debug(f"Unknown placeholders left in {slug}: {', '.join(sorted(set(leftover)))}")
        # One-shot markers: first occurrence only
        page = page.replace(CONTENT_MARKER, content_html, 1)
        page = page.replace(HEAD_MARKER, HEAD_EXTRAS, 1)
        return page

    def render_index(self, posts_html, pagination_html, current_year):
        page = self.index_template
        page = page.replace('{{posts}}', posts_html, 1)
        page = page.replace('{{pagination}}', pagination_html, 1)
        page = page.replace('{{currentYear}}', str(current_year), 1)
        return page

    def render_fragment(self, name, **context):
        return self.env.get_template(name).render(**context)
