import textwrap
import types

import pytest

from rss_fetch.app import create_app
from rss_fetch.config import AppConfig
from rss_fetch.state import SavedFeedStore, ThemeStore
from rss_fetch.storage import MemoryStorage


RSS_VALID = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="UTF-8"?>
    <rss version="2.0">
      <channel>
        <title>Example News</title>
        <link>https://example.com</link>
        <description>Latest stories from Example</description>
        <item>
          <title>First story</title>
          <link>https://example.com/first</link>
          <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
          <pubDate>Mon, 01 Jan 2024 10:00:00 GMT</pubDate>
        </item>
        <item>
          <title>Second story</title>
          <link>https://example.com/second</link>
          <description><![CDATA[<div>Plain <em>body</em></div>]]></description>
        </item>
        <item>
          <title>Third story</title>
          <link>https://example.com/third</link>
        </item>
      </channel>
    </rss>
    """
)

ATOM_VALID = textwrap.dedent(
    """\
    <?xml version="1.0" encoding="utf-8"?>
    <feed xmlns="http://www.w3.org/2005/Atom">
      <title>Example Atom</title>
      <subtitle>Notes and essays</subtitle>
      <entry>
        <title>Entry one</title>
        <link href="https://example.org/one">ignored text</link>
        <updated>2024-03-15T12:00:00Z</updated>
        <summary>Short summary</summary>
      </entry>
      <entry>
        <title>Entry two</title>
        <link href="https://example.org/two"/>
        <content type="html">&lt;p&gt;Full content&lt;/p&gt;</content>
      </entry>
    </feed>
    """
)


class FakeResponse:
    def __init__(
        self, status_code=200, reason="OK", content=b"", json_body=None, chunks=None
    ):
        self.status_code = status_code
        self.reason = reason
        self.content = content
        self._json_body = json_body
        self._chunks = chunks
        self.closed = False

    @property
    def ok(self):
        return self.status_code < 400

    def iter_content(self, chunk_size=1):
        if self._chunks is not None:
            for chunk in self._chunks:
                if isinstance(chunk, Exception):
                    raise chunk
                yield chunk
        elif self.content:
            yield self.content

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False

    def json(self):
        if self._json_body is None:
            raise ValueError("No JSON body")
        return self._json_body


class FakeSession:
    """Records GET calls and replays a canned response or exception."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []
        self.max_redirects = 30

    def get(self, url, **kwargs):
        self.calls.append(types.SimpleNamespace(url=url, **kwargs))
        if self.error is not None:
            raise self.error
        return self.response

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False


@pytest.fixture
def rss_xml():
    return RSS_VALID


@pytest.fixture
def atom_xml():
    return ATOM_VALID


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def saved_store(storage):
    return SavedFeedStore(storage)


@pytest.fixture
def theme_store(storage):
    return ThemeStore(storage)


@pytest.fixture
def app():
    application = create_app(AppConfig())
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
