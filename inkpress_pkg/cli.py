#!/usr/bin/env python3
"""
Command-line interface for Inkpress - static blog generator.
"""

import os
import sys
import argparse
import time
from typing import List, Optional

from . import __version__
from .core import Inkpress, setup_logging
from .settings import InkpressSettings, SiteConfig
from .server import serve, DEFAULT_PORT

STARTER_POST_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{title}} | {{siteName}}</title>
    <meta name="description" content="{{description}}">
    <meta name="author" content="{{author}}">
    <meta name="keywords" content="{{keywords}}">
    <meta property="og:title" content="{{title}}">
    <meta property="og:description" content="{{description}}">
    <meta property="og:image" content="{{featuredImage}}">
    <meta property="og:url" content="{{url}}">
    <meta property="article:published_time" content="{{isoDate}}">
    <link rel="canonical" href="{{url}}">
    <link rel="stylesheet" href="/assets/styles.css">
</head>
<body>
    <header><a href="/">{{siteName}}</a></header>
    <main>
        <article>
            <h1>{{title}}</h1>
            <p class="post-meta">By {{author}} &middot; <time datetime="{{isoDate}}">{{isoDate}}</time></p>
            {{content}}
        </article>
    </main>
</body>
</html>
"""

STARTER_INDEX_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Blog</title>
    <link rel="stylesheet" href="/assets/styles.css">
</head>
<body>
    <main>
        <section class="posts">
            {{posts}}
        </section>
        {{pagination}}
    </main>
    <footer>&copy; {{currentYear}}</footer>
</body>
</html>
"""

SAMPLE_POST = """---
title: "Hello, World!"
date: 2024-01-05
author: Your Name
description: "The first post on this blog."
keywords: "inkpress, static site, blog"
---

# Hello, World!

This post was generated by **Inkpress**. Edit `content/hello-world.md`
or add new `.md` files next to it, then run `inkpress` again.

Images placed in the content directory can be referenced with relative
paths, for example `![Cover](images/cover.jpg)`. They are cropped to
800x400 and converted to WebP during the build.
"""


def write_starter_file(path: str, content: str) -> None:
    if os.path.exists(path):
        print(f"File already exists: {os.path.relpath(path)}")
        return
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)
    print(f"Created: {os.path.relpath(path)}")


def create_starter_structure(settings: dict) -> None:
    """Create templates, a content directory and a sample post."""
    for directory in (settings['content'], settings['templates']):
        if os.path.exists(directory):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(directory, exist_ok=True)
            print(f"Created directory: {directory}")

    write_starter_file(os.path.join(settings['templates'], 'post-template.html'), STARTER_POST_TEMPLATE)
    write_starter_file(os.path.join(settings['templates'], 'index-template.html'), STARTER_INDEX_TEMPLATE)
    write_starter_file(os.path.join(settings['content'], 'hello-world.md'), SAMPLE_POST)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Inkpress - Static Blog Generator')
    parser.add_argument('--output', type=str,
                        help='Output directory for generated site')
    parser.add_argument('--content', type=str,
                        help='Content directory containing markdown files')
    parser.add_argument('--templates', type=str,
                        help='Directory holding post-template.html and index-template.html')
    parser.add_argument('--posts-per-page', type=int,
                        help='Number of posts per listing page')
    parser.add_argument('--site-name', type=str, help='Site name used in post pages')
    parser.add_argument('--site-url', type=str,
                        help='Base URL used for canonical links, sitemap and robots.txt')
    parser.add_argument('--default-author', type=str,
                        help='Author used when a post does not name one')
    parser.add_argument('--default-image', type=str,
                        help='Featured image used when a post does not name one')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter project')
    parser.add_argument('--serve', action='store_true',
                        help='Serve the output directory after building')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help='Port for --serve')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings_loader = InkpressSettings()

        if args.init:
            config_path = settings_loader.create_sample_config(args.init)
            print(f"Created sample configuration file: {config_path}")
            create_starter_structure(settings_loader.load_settings())
            print("\nEdit the templates and content, then run 'inkpress' to build your site.")
            return

        settings_loader.load_settings()
        args_dict = {k: v for k, v in vars(args).items() if v is not None}
        config = SiteConfig.from_settings(settings_loader.merge_with_args(args_dict))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging()
    if settings_loader.config_file_path:
        logger.debug(f"Loaded configuration from: {settings_loader.config_file_path}")

    start_time = time.time()
    generator = None
    try:
        generator = Inkpress(config)
        generator.run()
    except Exception as e:
        logger.debug("Build aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    total_time = time.time() - start_time
    logger.info(f"Site build completed in {total_time:.6f} seconds.")
    logger.info(f"Total posts generated: {generator.posts_generated}")
    logger.info(f"Total listing pages generated: {generator.pages_generated}")
    logger.info(f"Total images converted to WebP: {generator.image_conversion_count}")

    if args.serve:
        serve(config.output_dir, args.port)


if __name__ == '__main__':
    main()
