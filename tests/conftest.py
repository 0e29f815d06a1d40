"""Test configuration and fixtures for Inkpress tests."""

import io
import os
import sys
import shutil
import tempfile
from pathlib import Path

import pytest
from PIL import Image

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inkpress_pkg.settings import SiteConfig

POST_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>{{title}} | {{siteName}}</title>
    <meta name="description" content="{{description}}">
    <meta name="author" content="{{author}}">
    <meta name="keywords" content="{{keywords}}">
    <meta property="og:image" content="{{featuredImage}}">
    <link rel="canonical" href="{{url}}">
    <meta property="article:published_time" content="{{isoDate}}">
</head>
<body>
    <h1>{{title}}</h1>
    {{content}}
</body>
</html>"""

INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head><title>Blog</title></head>
<body>
    {{posts}}
    {{pagination}}
    <footer>{{currentYear}}</footer>
</body>
</html>"""


def make_image_bytes(size=(1200, 900), color='red', format='PNG', mode='RGB'):
    """Create an image in memory and return its encoded bytes."""
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format=format)
    return buffer.getvalue()


def write_post(content_dir, filename, title=None, date=None, body='Some text.', **extra):
    """Write a content file with YAML front matter."""
    lines = ['---']
    if title is not None:
        lines.append(f'title: "{title}"')
    if date is not None:
        lines.append(f'date: {date}')
    for key, value in extra.items():
        lines.append(f'{key}: "{value}"')
    lines.append('---')
    lines.append('')
    lines.append(body)
    path = Path(content_dir) / filename
    path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
    return str(path)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create an empty content directory."""
    content_dir = Path(temp_dir) / 'content'
    content_dir.mkdir()
    return str(content_dir)


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory with post and index templates."""
    templates_dir = Path(temp_dir) / 'templates'
    templates_dir.mkdir()
    (templates_dir / 'post-template.html').write_text(POST_TEMPLATE, encoding='utf-8')
    (templates_dir / 'index-template.html').write_text(INDEX_TEMPLATE, encoding='utf-8')
    return str(templates_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Path of the (not yet created) output directory."""
    return str(Path(temp_dir) / 'public')


@pytest.fixture
def site_config(mock_content_dir, mock_templates_dir, mock_output_dir):
    """Site configuration pointing at the temporary directories."""
    return SiteConfig(
        site_name='Test Blog',
        site_url='https://example.com/',
        default_author='Default Author',
        default_image='/images/default-featured.jpg',
        content_dir=mock_content_dir,
        templates_dir=mock_templates_dir,
        output_dir=mock_output_dir,
    )


@pytest.fixture
def sample_image_data():
    """A 1200x900 PNG image."""
    return make_image_bytes()
