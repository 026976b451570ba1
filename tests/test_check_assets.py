import sys

import pytest

import check_assets
from check_assets import audit_assets, media_references
from site_content import read_document


def test_sample_site_has_one_orphan(site):
    errors, warnings = audit_assets(site)
    assert errors == []
    assert warnings == ["[assets/unused.png] Not referenced by any page"]


def test_media_references_cover_tags_links_and_meta(write_post):
    path = write_post(
        "2024-02-01-media.md",
        "---\ntitle: Media\nimage: /assets/cover.png\n---\n"
        '<img src="../assets/unused.png" alt="x">\n'
        "[full size](/assets/hpa.png) and ![remote](https://img.example/a.png)\n",
    )
    refs = media_references(read_document(path))
    assert sorted(refs) == [
        (0, "/assets/cover.png"),
        (1, "../assets/unused.png"),
        (2, "/assets/hpa.png"),
    ]


def test_missing_images_are_errors(write_post, site):
    write_post("2024-02-01-media.md", "---\ntitle: Media\nimage: /assets/cover.png\n---\n![x](/assets/hpa.png)\n")
    errors, warnings = audit_assets(site)
    assert errors == ["[_posts/2024-02-01-media.md] Missing image: /assets/cover.png"]
    assert len(warnings) == 1


def run_main(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["check_assets", *argv])
    with pytest.raises(SystemExit) as exc:
        check_assets.main()
    return exc.value.code


def test_main_strict_fails_on_orphans(monkeypatch, site):
    assert run_main(monkeypatch, "--root", str(site)) == 0
    assert run_main(monkeypatch, "--root", str(site), "--strict") == 1


def test_img_tags_in_code_are_ignored(write_post, site):
    write_post(
        "2024-02-02-html.md",
        "---\ntitle: Html\n---\n```html\n<img src=\"logo.png\">\n```\nUse `<img src=\"inline.png\">` tags.\n",
    )
    errors, _ = audit_assets(site)
    assert errors == []


def test_empty_image_targets_are_skipped(write_post):
    path = write_post("2024-02-03-empty.md", "---\ntitle: Empty\n---\n![x](#) ![y](?v=1)\n")
    assert media_references(read_document(path)) == []


def test_malformed_image_target_reported(write_post, site):
    write_post("2024-02-04-bad.md", "---\ntitle: Bad\n---\n![x](http://[::1/logo.png)\n")
    errors, _ = audit_assets(site)
    assert errors == ["[_posts/2024-02-04-bad.md:1] Malformed link: http://[::1/logo.png"]


def test_orphans_under_images_dir(site):
    (site / "images").mkdir()
    (site / "images" / "old.gif").write_bytes(b"GIF89a")
    _, warnings = audit_assets(site)
    assert "[images/old.gif] Not referenced by any page" in warnings
