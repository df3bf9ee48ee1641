import time

from feed_digest.models import FeedDescriptor, Threat, ThreatLevel
from feed_digest.processors import parse_feed, parse_timestamp_ms

FEED = FeedDescriptor(name="Example Wire", url="https://example.com/rss")


def fixed_classifier(level=ThreatLevel.UNSPECIFIED, category="general"):
    calls = []

    def _classify(title, variant):
        calls.append((title, variant))
        return Threat(level=level, category=category, confidence=0.5)

    _classify.calls = calls
    return _classify


RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
  <item>
    <title><![CDATA[Central bank holds rates]]></title>
    <link>https://example.com/a</link>
    <pubDate>Tue, 03 Jun 2025 10:00:00 GMT</pubDate>
  </item>
  <item>
    <link>https://example.com/no-title</link>
  </item>
  <item>
    <title>Second
      story</title>
    <link>https://example.com/b</link>
    <pubDate>not a date</pubDate>
  </item>
</channel></rss>"""

ATOM = """<feed xmlns="http://www.w3.org/2005/Atom">
  <entry>
    <title type="html">Atom one</title>
    <link rel="alternate" href="https://example.com/atom-1"/>
    <updated>2025-06-02T08:00:00Z</updated>
    <published>2025-06-01T08:00:00Z</published>
  </entry>
  <entry>
    <title>Atom two</title>
    <link href="https://example.com/atom-2"/>
    <updated>2025-06-02T09:30:00+02:00</updated>
  </entry>
</feed>"""


def test_parse_rss_items():
    items = parse_feed(RSS, FEED, "full", classifier=fixed_classifier())
    assert [it.title for it in items] == ["Central bank holds rates", "Second story"]
    assert items[0].link == "https://example.com/a"
    assert items[0].published_at_ms == 1748944800000
    assert all(it.source == "Example Wire" for it in items)
    assert all(it.classification_source == "keyword" for it in items)


def test_fragment_without_title_is_skipped_but_siblings_kept():
    items = parse_feed(RSS, FEED, "full", classifier=fixed_classifier())
    assert "https://example.com/no-title" not in [it.link for it in items]
    assert len(items) == 2


def test_unparseable_date_defaults_to_now():
    before = int(time.time() * 1000)
    items = parse_feed(RSS, FEED, "full", classifier=fixed_classifier())
    after = int(time.time() * 1000)
    assert before <= items[1].published_at_ms <= after


def test_parse_atom_uses_href_and_published_first():
    items = parse_feed(ATOM, FEED, "tech", classifier=fixed_classifier())
    assert [it.link for it in items] == ["https://example.com/atom-1", "https://example.com/atom-2"]
    assert items[0].published_at_ms == parse_timestamp_ms("2025-06-01T08:00:00Z")
    assert items[1].published_at_ms == parse_timestamp_ms("2025-06-02T07:30:00Z")


def test_classifier_receives_title_and_variant_and_alert_is_derived():
    classifier = fixed_classifier(level=ThreatLevel.HIGH, category="security")
    items = parse_feed(ATOM, FEED, "finance", classifier=classifier)
    assert classifier.calls == [("Atom one", "finance"), ("Atom two", "finance")]
    assert all(it.is_alert and it.level is ThreatLevel.HIGH and it.category == "security" for it in items)

    calm = parse_feed(ATOM, FEED, "finance", classifier=fixed_classifier(level=ThreatLevel.MEDIUM))
    assert not any(it.is_alert for it in calm)


def test_nothing_usable_returns_none():
    assert parse_feed("<rss><channel></channel></rss>", FEED, "full") is None
    assert parse_feed("<rss><item><link>x</link></item></rss>", FEED, "full") is None
    assert parse_feed("garbage <<<&&&", FEED, "full") is None


def test_parse_timestamp_formats():
    assert parse_timestamp_ms("Tue, 03 Jun 2025 10:00:00 +0000") == 1748944800000
    assert parse_timestamp_ms("2025-06-03T10:00:00") == 1748944800000
    assert parse_timestamp_ms("") is None
    assert parse_timestamp_ms("yesterday-ish") is None
