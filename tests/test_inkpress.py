"""End-to-end tests for the Inkpress build."""

import asyncio
import json
import os
import re
from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from inkpress_pkg import Inkpress
from inkpress_pkg.cli import main
from inkpress_pkg.errors import MissingRequiredField
from inkpress_pkg.images import ImagePipeline

from conftest import write_post

PLACEHOLDER = re.compile(r'{{\s*\w+\s*}}')


class RecordingPipeline(ImagePipeline):
    """Pipeline that records when each transcode starts and ends."""

    delays = {'a1.png': 0.04, 'a2.png': 0.01, 'b1.png': 0.0, 'b2.png': 0.02}

    def __init__(self, config):
        super().__init__(config, session=Mock())
        self.events = []

    async def transcode(self, source):
        name = os.path.basename(source)
        self.events.append(('start', name))
        await asyncio.sleep(self.delays[name])
        self.events.append(('end', name))
        return f'/images/{name[:2]}.webp'


def build(config):
    generator = Inkpress(config)
    generator.run()
    return generator


def read_manifest(config):
    return json.loads((Path(config.output_dir) / 'posts.json').read_text(encoding='utf-8'))


class TestBuild:
    """Test cases for a full site build."""

    def test_hello_world(self, site_config, mock_content_dir):
        write_post(mock_content_dir, 'hello.md', title='Hello, World!', date='2024-01-05',
                   body='# Hi\n\nNo images here.')

        generator = build(site_config)

        page = (Path(site_config.output_dir) / 'posts' / 'hello-world.html').read_text(encoding='utf-8')
        assert not PLACEHOLDER.search(page)
        assert '<h1>Hi</h1>' in page
        assert read_manifest(site_config) == [
            {'title': 'Hello, World!', 'date': '2024-01-05', 'slug': 'hello-world', 'path': '/posts/hello-world'},
        ]
        assert generator.posts_generated == 1
        assert generator.pages_generated == 1

    def test_posts_sorted_by_date_descending(self, site_config, mock_content_dir):
        dates = ['2023-05-01', '2024-01-05', '2022-12-31', '2024-03-10', '2023-11-11', '2021-01-01', '2024-02-29']
        for i, day in enumerate(dates):
            write_post(mock_content_dir, f'post{i}.md', title=f'Post {i}', date=day)

        build(site_config)

        manifest = read_manifest(site_config)
        manifest_dates = [entry['date'] for entry in manifest]
        assert manifest_dates == sorted(dates, reverse=True)
        slugs = [entry['slug'] for entry in manifest]
        assert len(set(slugs)) == len(slugs)

    def test_written_out_dates_sort_by_date(self, site_config, mock_content_dir):
        write_post(mock_content_dir, 'old.md', title='Old', date='2020-01-01')
        write_post(mock_content_dir, 'new.md', title='New', date='January 5, 2024')
        write_post(mock_content_dir, 'slash.md', title='Slash', date='2023/06/01')

        build(site_config)

        manifest = read_manifest(site_config)
        assert [(entry['title'], entry['date']) for entry in manifest] == [
            ('New', 'January 5, 2024'),
            ('Slash', '2023/06/01'),
            ('Old', '2020-01-01'),
        ]
        page = (Path(site_config.output_dir) / 'posts' / 'new.html').read_text(encoding='utf-8')
        assert 'content="2024-01-05T00:00:00.000Z"' in page

    def test_items_are_built_one_at_a_time(self, site_config, mock_content_dir):
        for name in ('a1.png', 'a2.png', 'b1.png', 'b2.png'):
            Path(mock_content_dir, name).write_bytes(b'stub')
        write_post(mock_content_dir, 'a.md', title='First', date='2024-01-01',
                   body='![one](a1.png)\n\n![two](a2.png)')
        write_post(mock_content_dir, 'b.md', title='Second', date='2024-01-02',
                   body='![one](b1.png)\n\n![two](b2.png)')
        generator = Inkpress(site_config)
        generator.images = RecordingPipeline(site_config)

        generator.run()

        events = generator.images.events
        first_item_done = max(i for i, (kind, name) in enumerate(events) if kind == 'end' and name[0] == 'a')
        second_item_start = min(i for i, (kind, name) in enumerate(events) if kind == 'start' and name[0] == 'b')
        assert first_item_done < second_item_start
        assert generator.image_conversion_count == 4

    def test_listing_pages(self, site_config, mock_content_dir):
        for i in range(12):
            write_post(mock_content_dir, f'p{i:02d}.md', title=f'Entry {i}', date=f'2024-01-{i + 1:02d}')

        generator = build(site_config)

        output = Path(site_config.output_dir)
        assert generator.pages_generated == 3
        index = (output / 'index.html').read_bytes()
        assert index == (output / 'page' / '1' / 'index.html').read_bytes()
        assert (output / 'page' / '3' / 'index.html').exists()
        assert not (output / 'page' / '4').exists()

        first = index.decode('utf-8')
        assert first.count('class="post-item"') == 5
        assert first.index('Entry 11') < first.index('Entry 10')
        last = (output / 'page' / '3' / 'index.html').read_text(encoding='utf-8')
        assert last.count('class="post-item"') == 2

    def test_empty_content_directory(self, site_config):
        generator = build(site_config)

        output = Path(site_config.output_dir)
        assert generator.pages_generated == 0
        assert not (output / 'index.html').exists()
        assert read_manifest(site_config) == []
        assert (output / 'sitemap.xml').exists()
        assert (output / 'robots.txt').exists()

    def test_images_are_transcoded_and_rewritten(self, site_config, mock_content_dir, sample_image_data):
        Path(mock_content_dir, 'cover.png').write_bytes(sample_image_data)
        write_post(mock_content_dir, 'pics.md', title='Pictures', date='2024-01-05',
                   body='![Cover](cover.png)\n\n![Missing](nowhere.png)')

        generator = build(site_config)

        page = (Path(site_config.output_dir) / 'posts' / 'pictures.html').read_text(encoding='utf-8')
        assert 'src="/images/cover.webp"' in page
        assert 'src="nowhere.png"' in page
        assert generator.image_conversion_count == 1
        with Image.open(Path(site_config.output_dir) / 'images' / 'cover.webp') as img:
            assert img.size == (800, 400)

    def test_missing_title_aborts_run(self, site_config, mock_content_dir):
        write_post(mock_content_dir, 'a.md', title='First', date='2024-01-01')
        write_post(mock_content_dir, 'b.md', date='2024-01-02')
        write_post(mock_content_dir, 'c.md', title='Third', date='2024-01-03')

        with pytest.raises(MissingRequiredField):
            build(site_config)

        posts_dir = Path(site_config.output_dir) / 'posts'
        assert sorted(p.name for p in posts_dir.iterdir()) == ['first.html']
        assert not (Path(site_config.output_dir) / 'posts.json').exists()

    def test_async_hooks_run_before_image_pipeline(self, site_config, mock_content_dir):
        write_post(mock_content_dir, 'hook.md', title='Hooked', body='text')
        generator = Inkpress(site_config)

        async def shout(html):
            await asyncio.sleep(0)
            return html.upper()

        generator.renderer.add_hook(shout)
        generator.run()

        page = (Path(site_config.output_dir) / 'posts' / 'hooked.html').read_text(encoding='utf-8')
        assert '<P>TEXT</P>' in page


class TestCli:
    """Test cases for the command-line entry point."""

    def cli_args(self, site_config):
        return [
            '--content', site_config.content_dir,
            '--templates', site_config.templates_dir,
            '--output', site_config.output_dir,
            '--site-url', 'https://blog.example.org',
        ]

    def test_successful_build(self, site_config, mock_content_dir, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        write_post(mock_content_dir, 'hello.md', title='Hello, World!', date='2024-01-05')

        main(self.cli_args(site_config))

        robots = (Path(site_config.output_dir) / 'robots.txt').read_text()
        assert 'Sitemap: https://blog.example.org/sitemap.xml' in robots

    def test_missing_title_exits_non_zero(self, site_config, mock_content_dir, temp_dir, monkeypatch, capsys):
        monkeypatch.chdir(temp_dir)
        write_post(mock_content_dir, 'untitled.md', date='2024-01-05')

        with pytest.raises(SystemExit) as excinfo:
            main(self.cli_args(site_config))

        assert excinfo.value.code == 1
        assert "Missing required field 'title'" in capsys.readouterr().err
        assert list((Path(site_config.output_dir) / 'posts').iterdir()) == []

    def test_missing_templates_exit_non_zero(self, site_config, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        args = self.cli_args(site_config)
        args[3] = str(Path(temp_dir) / 'no-templates')

        with pytest.raises(SystemExit) as excinfo:
            main(args)

        assert excinfo.value.code == 1

    def test_init_creates_starter_project(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)

        main(['--init', 'yml'])

        root = Path(temp_dir)
        assert (root / 'inkpress.yml').exists()
        assert (root / 'templates' / 'post-template.html').exists()
        assert (root / 'templates' / 'index-template.html').exists()
        assert (root / 'content' / 'hello-world.md').exists()

        main([])
        assert (root / 'public' / 'posts' / 'hello-world.html').exists()
