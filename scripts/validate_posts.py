#!/usr/bin/env python3
"""
Validate front matter of the landing page and every blog post.

Checks:
- Posts are named YYYY-MM-DD-name.md
- Front matter parses and has a non-empty title and slug
- Slugs are lowercase-hyphenated and unique across posts
- layout, description, keywords are present (warnings)
- Index page lists repositories with a URL and a one-line description

Usage:
    python3 scripts/validate_posts.py
    python3 scripts/validate_posts.py --strict  # treat warnings as errors
    python3 scripts/validate_posts.py --post _posts/2024-01-05-scaling-pods.md
"""

import argparse
import re
import sys
from collections import defaultdict
from pathlib import Path

from site_content import (
    FRONT_MATTER_KEYS,
    INDEX_FILE,
    SITE_ROOT,
    FrontMatterError,
    coerce_date,
    display_path,
    list_post_files,
    normalize_keywords,
    parse_index_entries,
    parse_post_filename,
    print_issues,
    read_document,
)

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_DESCRIPTION_LENGTH = 160


def validate_front_matter(meta: dict, prefix: str) -> tuple[list[str], list[str]]:
    """Check the front-matter keys shared by every post. Returns (errors, warnings)."""
    errors = []
    warnings = []

    for key in ("title", "slug"):
        if key not in meta:
            errors.append(f"{prefix} Missing '{key}' field")
        elif meta[key] is None or not str(meta[key]).strip():
            errors.append(f"{prefix} Empty '{key}' field")

    slug = meta.get("slug")
    if slug is not None and str(slug).strip() and not SLUG_RE.match(str(slug)):
        errors.append(f"{prefix} Invalid slug '{slug}' (use lowercase words joined by '-')")

    for key in FRONT_MATTER_KEYS:
        if key in ("title", "slug"):
            continue
        if key not in meta or meta[key] is None:
            warnings.append(f"{prefix} Missing '{key}' field")

    description = meta.get("description")
    if description is not None and len(str(description)) > MAX_DESCRIPTION_LENGTH:
        warnings.append(
            f"{prefix} description is {len(str(description))} chars (recommend <= {MAX_DESCRIPTION_LENGTH})"
        )

    if meta.get("keywords") is not None:
        try:
            keywords = normalize_keywords(meta["keywords"])
        except FrontMatterError as e:
            errors.append(f"{prefix} {e}")
        else:
            if not keywords:
                warnings.append(f"{prefix} keywords is empty")

    return errors, warnings


def validate_post(path: Path, root: Path = SITE_ROOT) -> tuple[list[str], list[str]]:
    """Validate a single post file. Returns (errors, warnings)."""
    errors = []
    warnings = []
    prefix = f"[{display_path(path, root)}]"

    parsed = parse_post_filename(path.name)
    if not parsed:
        errors.append(f"{prefix} Filename must start with a YYYY-MM-DD- date")

    try:
        doc = read_document(path)
    except (FrontMatterError, OSError) as e:
        errors.append(f"{prefix} {e}")
        return errors, warnings

    e, w = validate_front_matter(doc.meta, prefix)
    errors.extend(e)
    warnings.extend(w)

    if "date" in doc.meta:
        meta_date = coerce_date(doc.meta["date"])
        if meta_date is None:
            warnings.append(f"{prefix} Unparseable date: {doc.meta['date']!r}")
        elif parsed and meta_date != parsed[0]:
            warnings.append(f"{prefix} date {meta_date} disagrees with filename date {parsed[0]}")

    if not doc.body.strip():
        warnings.append(f"{prefix} Empty body")

    return errors, warnings


def find_duplicate_slugs(paths: list[Path], root: Path = SITE_ROOT) -> list[str]:
    """One error per slug claimed by more than one post.

    A post without a front-matter slug claims its filename stem, the same
    permalink check_links accepts for it.
    """
    by_slug = defaultdict(list)
    for path in paths:
        try:
            slug = str(read_document(path).meta.get("slug") or "").strip()
        except (FrontMatterError, OSError):
            continue
        if not slug:
            parsed = parse_post_filename(path.name)
            slug = parsed[1] if parsed else ""
        if slug:
            by_slug[slug].append(display_path(path, root))

    errors = []
    for slug, owners in sorted(by_slug.items()):
        if len(owners) > 1:
            errors.append(f"[slug:{slug}] Used by {len(owners)} posts: {', '.join(owners)}")
    return errors


def validate_index(root: Path = SITE_ROOT) -> tuple[list[str], list[str]]:
    """Validate the landing page and its repository listing."""
    errors = []
    warnings = []
    path = Path(root) / INDEX_FILE
    prefix = f"[{INDEX_FILE}]"

    if not path.exists():
        warnings.append(f"{prefix} File not found")
        return errors, warnings

    try:
        doc = read_document(path)
    except (FrontMatterError, OSError) as e:
        errors.append(f"{prefix} {e}")
        return errors, warnings

    if not str(doc.meta.get("title") or "").strip():
        errors.append(f"{prefix} Missing 'title' field")

    entries = parse_index_entries(doc.body)
    if not entries:
        warnings.append(f"{prefix} No repository entries found")

    seen_urls = set()
    for i, entry in enumerate(entries):
        entry_prefix = f"{prefix} entry[{i}]"
        if not entry.name:
            errors.append(f"{entry_prefix} Empty repository name")
        if not entry.url.startswith(("http://", "https://")):
            errors.append(f"{entry_prefix} URL must be http(s): '{entry.url}'")
        if not entry.description:
            warnings.append(f"{entry_prefix} Missing description for {entry.name or entry.url}")
        if entry.url in seen_urls:
            warnings.append(f"{entry_prefix} Duplicate URL: {entry.url}")
        seen_urls.add(entry.url)

    return errors, warnings


def main():
    parser = argparse.ArgumentParser(description="Validate post front matter and the index page")
    parser.add_argument("--root", type=Path, default=SITE_ROOT, help="Site root directory")
    parser.add_argument("--strict", action="store_true", help="Treat warnings as errors")
    parser.add_argument("--post", type=Path, help="Validate a single post file")
    args = parser.parse_args()

    root = args.root
    posts = [args.post] if args.post else list_post_files(root)

    all_errors = []
    all_warnings = []

    print(f"Validating {len(posts)} posts under {root}...")
    print()

    if not args.post:
        errors, warnings = validate_index(root)
        all_errors.extend(errors)
        all_warnings.extend(warnings)
        status = "✗" if errors else ("⚠" if warnings else "✓")
        print(f"{status} {INDEX_FILE}: {len(errors)} errors, {len(warnings)} warnings")

    for path in posts:
        errors, warnings = validate_post(path, root)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

        issue_count = len(errors) + (len(warnings) if args.strict else 0)
        if issue_count > 0:
            status = "✗" if errors else "⚠"
            print(f"{status} {display_path(path, root)}: {len(errors)} errors, {len(warnings)} warnings")
        else:
            print(f"✓ {display_path(path, root)}")

    if not args.post:
        all_errors.extend(find_duplicate_slugs(posts, root))

    # Summary
    print()
    print("=" * 50)

    print_issues(all_errors, all_warnings)

    total_issues = len(all_errors) + (len(all_warnings) if args.strict else 0)
    if total_issues == 0:
        print(f"\n✓ ALL VALIDATIONS PASSED ({len(all_warnings)} warnings)")
        sys.exit(0)
    else:
        print(f"\n✗ VALIDATION FAILED: {len(all_errors)} errors, {len(all_warnings)} warnings")
        sys.exit(1)


if __name__ == "__main__":
    main()
