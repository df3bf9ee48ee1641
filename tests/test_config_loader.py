from pathlib import Path

import pytest

from feed_digest.utils.config_loader import (
    ConfigError,
    google_news_url,
    load_feed_registry,
    parse_feed_registry,
)


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "feeds.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_bundled_registry_loads():
    registry = load_feed_registry()
    assert set(registry.variants) == {"full", "tech", "finance", "happy"}
    assert "politics" in registry.feeds_for("full")
    assert registry.intel
    assert all(f.url.startswith("https://") for cats in registry.variants.values() for feeds in cats.values() for f in feeds)
    assert registry.feeds_for("nope") == {}


def test_query_entries_expand_to_google_news(tmp_path):
    path = write(
        tmp_path,
        """
variants:
  full:
    politics:
      - name: AP News
        query: 'site:apnews.com'
      - name: Le Monde
        url: https://www.lemonde.fr/rss/une.xml
        lang: fr
""",
    )
    registry = load_feed_registry(path)
    ap, le_monde = registry.feeds_for("full")["politics"]
    assert ap.url == "https://news.google.com/rss/search?q=site%3Aapnews.com&hl=en-US&gl=US&ceid=US:en"
    assert ap.lang is None
    assert le_monde.lang == "fr"
    assert registry.intel == ()


def test_google_news_url_escapes_like_encode_uri_component():
    assert google_news_url('"Vision 2030" (project)') == (
        "https://news.google.com/rss/search?q=%22Vision%202030%22%20(project)&hl=en-US&gl=US&ceid=US:en"
    )


@pytest.mark.parametrize(
    "data",
    [
        {"variants": []},
        {"variants": {"full": []}},
        {"variants": {"full": {"news": {"name": "x"}}}},
        {"variants": {"full": {"news": [{"url": "https://a.example"}]}}},
        {"variants": {"full": {"news": [{"name": "x"}]}}},
        {"variants": {"full": {"news": [{"name": "x", "url": "https://a", "query": "q"}]}}},
        {"variants": {"full": {"news": [{"name": "x", "url": "ftp://a.example"}]}}},
        {"variants": {"full": {"news": [{"name": "x", "url": "https://a.example", "lang": 3}]}}},
        {"intel": [{"name": "x"}]},
    ],
)
def test_invalid_registries_raise(data):
    with pytest.raises(ConfigError):
        parse_feed_registry(data)


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_feed_registry(tmp_path / "missing.yaml")


def test_non_mapping_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        load_feed_registry(write(tmp_path, "- just\n- a list\n"))
