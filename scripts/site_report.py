#!/usr/bin/env python3
"""
Inventory of the site: posts (newest first), index entries, keywords.

Usage:
    python3 scripts/site_report.py
    python3 scripts/site_report.py --json > report.json
"""

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

from site_content import SITE_ROOT, FrontMatterError, display_path, load_index, load_posts


def build_report(root: Path = SITE_ROOT) -> dict:
    root = Path(root)
    posts = list(reversed(load_posts(root)))
    index = load_index(root)
    entries = index[1] if index else []

    keywords = Counter()
    for post in posts:
        keywords.update(k.lower() for k in post.keywords)

    return {
        "posts": [
            {
                "date": post.published.isoformat() if post.published else None,
                "slug": post.slug,
                "title": post.title,
                "keywords": post.keywords,
                "path": display_path(post.path, root),
            }
            for post in posts
        ],
        "repositories": [
            {"name": e.name, "url": e.url, "description": e.description}
            for e in entries
        ],
        "keywords": dict(keywords.most_common()),
    }


def print_report(report: dict):
    print("=" * 80)
    print("SITE INVENTORY")
    print("=" * 80)

    print(f"\n📝 {len(report['posts'])} posts")
    for post in report["posts"]:
        print(f"  {post['date'] or '????-??-??'}  {post['slug']:40} {post['title']} ({len(post['keywords'])} keywords)")

    print(f"\n📁 {len(report['repositories'])} repositories on the index page")
    for repo in report["repositories"]:
        print(f"  - {repo['name']}: {repo['description'] or '(no description)'}")
        print(f"    {repo['url']}")

    print(f"\n🏷  {len(report['keywords'])} keywords")
    for keyword, count in list(report["keywords"].items())[:20]:
        print(f"  {keyword}: {count}")
    if len(report["keywords"]) > 20:
        print(f"  ... and {len(report['keywords']) - 20} more")


def main():
    parser = argparse.ArgumentParser(description="Print an inventory of posts and repositories")
    parser.add_argument("--root", type=Path, default=SITE_ROOT, help="Site root directory")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    args = parser.parse_args()

    try:
        report = build_report(args.root)
    except FrontMatterError as e:
        print(f"✗ {e}")
        sys.exit(1)

    if args.json:
        print(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        print_report(report)


if __name__ == "__main__":
    main()
