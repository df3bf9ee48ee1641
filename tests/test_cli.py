import json

from feed_digest import main as cli
from feed_digest.models import Digest, FeedStatus
from feed_digest.utils.config_loader import ConfigError


class RecordingService:
    def __init__(self):
        self.calls = []

    def get_digest(self, variant, lang):
        self.calls.append((variant, lang))
        return Digest(feed_statuses={"Wire": FeedStatus.EMPTY})


def test_cli_prints_digest_json(monkeypatch, capsys):
    svc = RecordingService()
    created = {}

    def factory(**kwargs):
        created.update(kwargs)
        return svc

    monkeypatch.setattr(cli, "create_digest_service", factory)
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)

    assert cli.main(["--variant", "tech", "--lang", "de", "--no-cache", "--indent", "0"]) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["feedStatuses"] == {"Wire": "empty"}
    assert set(out) == {"categories", "feedStatuses", "generatedAt"}
    assert svc.calls == [("tech", "de")]
    assert created == {"registry_path": None, "use_cache": False}


def test_cli_reports_bad_registry(monkeypatch):
    def factory(**kwargs):
        raise ConfigError("broken")

    monkeypatch.setattr(cli, "create_digest_service", factory)
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    assert cli.main(["--registry", "nope.yaml"]) == 1
