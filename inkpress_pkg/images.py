import io
import os
import re
import html
import asyncio
import logging
from urllib.parse import urlparse, unquote

import requests
from PIL import Image, ImageOps

from .errors import ImageTranscodeFailure

# ![alt](path) as written, or the <img src="..."> mistune emits for it.
# Raw HTML bodies may quote src with single quotes.
IMAGE_REFERENCE = re.compile(
    r'!\[(?P<alt>[^\]]*)\]\((?P<md_path>[^)]+)\)'
    r'|<img\b[^>]*?\bsrc=(?P<quote>["\'])(?P<src>.+?)(?P=quote)'
)

REMOTE_URL = re.compile(r'^https?://', re.IGNORECASE)

_UNSAFE_NAME_CHAR = re.compile(r'[^a-z0-9]', re.IGNORECASE)


def sanitize_basename(source):
    """Derive the output file name (without extension) for an image source."""
    if REMOTE_URL.match(source):
        source = urlparse(source).path
    name = os.path.splitext(os.path.basename(source))[0]
    name = _UNSAFE_NAME_CHAR.sub('-', name).lower()
    return name or 'image'


class ImageReference:
    """One image reference found in a rendered fragment."""

    def __init__(self, index, start, end, path):
        self.index = index
        # Span of the path text only, so alt text and tag attributes survive
        self.start = start
        self.end = end
        self.path = path

    def __repr__(self):
        return f"ImageReference({self.index}, {self.path!r})"


class ImagePipeline:
    """
    Find image references in a rendered HTML fragment, transcode them to
    WebP, and point the references at the transcoded files.

    All transcodes for one fragment run concurrently and are joined once.
    Results are substituted back by reference index, so the output never
    depends on the order in which transcodes finish.
    """

    def __init__(self, config, session=None):
        self.config = config
        self.content_dir = config.content_dir
        self.images_dir = config.images_dir
        self.session = session or requests.Session()
        self.logger = logging.getLogger('Inkpress.ImagePipeline')

    def find_references(self, fragment):
        """Return every image reference in document order."""
        references = []
        for match in IMAGE_REFERENCE.finditer(fragment):
            group = 'md_path' if match.group('md_path') is not None else 'src'
            start, end = match.span(group)
            references.append(ImageReference(len(references), start, end, match.group(group).strip()))
        return references

    def resolve_source(self, path):
        """
        Return what to retrieve for a reference, or None to leave it alone.

        Remote URLs are always returned; nothing checks they are reachable.
        Local paths are returned only when the file exists under the content
        directory.
        """
        path = html.unescape(path)
        if REMOTE_URL.match(path):
            return path
        local_path = os.path.join(self.content_dir, unquote(path).lstrip('/'))
        if os.path.isfile(local_path):
            return local_path
        return None

    async def process(self, fragment):
        """
        Rewrite image references in ``fragment``.

        Returns:
            (updated_fragment, images_converted) tuple
        """
        # Pass 1: record each reference and schedule its transcode
        scheduled = []
        for reference in self.find_references(fragment):
            source = self.resolve_source(reference.path)
            if source is None:
                self.logger.debug(f"Leaving unresolved image reference: {reference.path}")
                continue
            task = asyncio.ensure_future(self.transcode_reference(reference, source))
            scheduled.append((reference, task))

        if not scheduled:
            return fragment, 0

        # Pass 2: one join point, then substitute by index
        outcomes = await asyncio.gather(*(task for _, task in scheduled))
        replacements = {}
        images_converted = 0
        for index, new_path, converted in outcomes:
            replacements[index] = new_path
            if converted:
                images_converted += 1

        pieces = []
        cursor = 0
        for reference, _ in scheduled:
            pieces.append(fragment[cursor:reference.start])
            pieces.append(replacements[reference.index])
            cursor = reference.end
        pieces.append(fragment[cursor:])
        return ''.join(pieces), images_converted

    async def transcode_reference(self, reference, source):
        """Transcode one reference, falling back to its original path on failure."""
        try:
            new_path = await self.transcode(source)
        except ImageTranscodeFailure as e:
            self.logger.warning(f"{e}; keeping original reference {reference.path}")
            return reference.index, reference.path, False
        return reference.index, new_path, True

    async def transcode(self, source):
        """Retrieve, resize and re-encode one image. Returns its public path."""
        data = await self.retrieve(source)
        name = sanitize_basename(source)
        output_path = os.path.join(self.images_dir, f'{name}.webp')
        await asyncio.to_thread(self.encode_webp, data, output_path)
        self.logger.debug(f"Transcoded image: {source} -> {output_path}")
        return f'/images/{name}.webp'

    async def retrieve(self, source):
        if REMOTE_URL.match(source):
            return await asyncio.to_thread(self.download, source)
        try:
            return await asyncio.to_thread(self.read_local, source)
        except (IOError, OSError) as e:
            raise ImageTranscodeFailure(source, e)

    def read_local(self, path):
        with open(path, 'rb') as f:
            return f.read()

    def download(self, url):
        try:
            response = self.session.get(url, timeout=self.config.image_fetch_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageTranscodeFailure(url, e)
        return response.content

    def encode_webp(self, data, output_path):
        """Cover-fit, centre-crop and save ``data`` as WebP at ``output_path``."""
        size = (self.config.image_max_width, self.config.image_max_height)
        try:
            with Image.open(io.BytesIO(data)) as img:
                if img.mode not in ('RGB', 'RGBA'):
                    img = img.convert('RGBA' if img.mode in ('LA', 'P', 'PA') else 'RGB')
                fitted = ImageOps.fit(img, size, method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))
                fitted.save(output_path, 'WEBP', quality=self.config.image_quality)
        except (IOError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageTranscodeFailure(output_path, e)
