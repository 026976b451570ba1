import json
import sys

import site_report
from site_report import build_report


def test_build_report(site):
    report = build_report(site)
    assert [p["slug"] for p in report["posts"]] == ["docker-layers", "scaling-pods"]
    assert report["posts"][0] == {
        "date": "2024-03-10",
        "slug": "docker-layers",
        "title": "Docker image layers",
        "keywords": ["docker", "kubernetes"],
        "path": "_posts/2024-03-10-docker-layers.md",
    }
    assert report["keywords"] == {"kubernetes": 2, "autoscaling": 1, "docker": 1}
    assert report["repositories"][0]["name"] == "kube-autoscale-notes"


def test_build_report_without_index(site):
    (site / "index.md").unlink()
    assert build_report(site)["repositories"] == []


def test_main_json(monkeypatch, site, capsys):
    monkeypatch.setattr(sys, "argv", ["site_report", "--root", str(site), "--json"])
    site_report.main()
    report = json.loads(capsys.readouterr().out)
    assert len(report["posts"]) == 2
    assert len(report["repositories"]) == 2


def test_main_text(monkeypatch, site, capsys):
    monkeypatch.setattr(sys, "argv", ["site_report", "--root", str(site)])
    site_report.main()
    out = capsys.readouterr().out
    assert "2 posts" in out
    assert "FastAPI JWT verification demo" in out
