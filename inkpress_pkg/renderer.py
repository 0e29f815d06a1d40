import inspect

import mistune


class MarkdownRenderer:
    """Convert markdown bodies to HTML fragments."""

    def __init__(self):
        self.markdown_parser = self.create_markdown_parser()
        self.hooks = []

    def create_markdown_parser(self):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)
            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>'.format(escaped_code)
        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def add_hook(self, hook):
        """
        Register a post-processing hook.

        A hook takes the rendered HTML and returns new HTML, either directly or
        as an awaitable. Hooks run in registration order, only from
        ``render_async``.
        """
        self.hooks.append(hook)

    def render(self, text):
        """Convert markdown text to HTML."""
        return self.markdown_parser(text or '')

    async def render_async(self, text):
        html = self.render(text)
        for hook in self.hooks:
            result = hook(html)
            if inspect.isawaitable(result):
                result = await result
            html = result
        return html
