#!/usr/bin/env python3
"""
Check that every link and embedded image in the site resolves.

Internal links must point at an existing file, a directory with an index
page, or the slug of a known post. Same-page anchors must match a heading.
External links are only fetched with --external.

Usage:
    python3 scripts/check_links.py
    python3 scripts/check_links.py --external --workers 10
"""

import argparse
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from urllib.parse import unquote

import requests

from site_content import (
    SITE_ROOT,
    Document,
    display_path,
    load_documents,
    parse_post_filename,
    print_issues,
    split_target,
)

# --- CONFIG ---
LINK_TIMEOUT = float(os.getenv("LINK_TIMEOUT", "10"))
DEFAULT_WORKERS = 20
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
INDEX_PAGES = ("index.md", "index.html")


def classify_target(target: str) -> str:
    """One of: external, anchor, internal, skip, malformed."""
    if not target or target.startswith(("{{", "{%")):
        return "skip"
    if target.startswith("#"):
        return "anchor"
    parts = split_target(target)
    if parts is None:
        return "malformed"
    scheme = parts.scheme.lower()
    if scheme in ("http", "https"):
        return "external"
    if target.startswith("//"):
        return "external"
    if scheme:
        # mailto:, tel:, data:, ...
        return "skip"
    return "internal"


def known_slugs(docs: list[Document]) -> set[str]:
    """Slugs a permalink may end with: front-matter slug or post filename stem."""
    slugs = set()
    for doc in docs:
        slug = doc.meta.get("slug")
        if slug is not None and str(slug).strip():
            slugs.add(str(slug).strip())
        parsed = parse_post_filename(doc.path.name)
        if parsed:
            slugs.add(parsed[1])
    return slugs


def resolve_internal(target: str, doc_path: Path, root: Path, slugs: set[str], image: bool = False) -> bool:
    parts = split_target(target)
    if parts is None:
        return False
    path_part = unquote(parts.path)
    if not path_part:
        return True

    base = Path(root) if path_part.startswith("/") else Path(doc_path).parent
    candidate = base / path_part.lstrip("/")

    if candidate.is_file():
        return True
    if image:
        return False
    if candidate.is_dir() and any((candidate / name).is_file() for name in INDEX_PAGES):
        return True
    # "/" or "./" under a relative root leaves no name to suffix
    if candidate.name and candidate.with_name(candidate.name + ".md").is_file():
        return True

    last = PurePosixPath(path_part.rstrip("/")).name
    for suffix in (".html", ".md"):
        if last.endswith(suffix):
            last = last[: -len(suffix)]
    return last in slugs


def check_document_links(doc: Document, root: Path, slugs: set[str]) -> tuple[list[str], list[tuple[str, str]]]:
    """Check local links of one document.

    Returns (errors, external) where external holds (location, url) pairs
    left for the network check.
    """
    errors = []
    external = []
    name = display_path(doc.path, root)
    anchors = None

    for link in doc.links + doc.images:
        where = f"[{name}:{link.line}]"
        kind = classify_target(link.target)
        if kind == "skip":
            continue
        if kind == "malformed":
            errors.append(f"{where} Malformed link: {link.target}")
            continue
        if kind == "external":
            url = "https:" + link.target if link.target.startswith("//") else link.target
            external.append((where, url))
        elif kind == "anchor":
            if anchors is None:
                anchors = doc.anchors
            if unquote(link.target[1:]) not in anchors:
                errors.append(f"{where} No heading for anchor '{link.target}'")
        elif not resolve_internal(link.target, doc.path, root, slugs, image=link.is_image):
            what = "image" if link.is_image else "link"
            errors.append(f"{where} Broken {what}: {link.target}")

    return errors, external


def check_url(url, timeout=LINK_TIMEOUT):
    try:
        headers = {"User-Agent": USER_AGENT}
        # Try HEAD first for speed
        response = requests.head(url, headers=headers, timeout=timeout, allow_redirects=True)
        if response.status_code >= 400:
            # Fallback to GET for sites that block HEAD
            response = requests.get(url, headers=headers, timeout=timeout, allow_redirects=True)
        return url, response.status_code
    except requests.RequestException as e:
        return url, str(e)


def is_broken(status) -> bool:
    return not isinstance(status, int) or status >= 400


def check_external(urls: list[str], workers: int = DEFAULT_WORKERS, timeout: float = LINK_TIMEOUT) -> dict:
    """Fetch unique URLs in parallel. Returns {url: status} for broken ones."""
    unique = sorted(set(urls))
    if not unique:
        return {}
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda u: check_url(u, timeout), unique))
    return {url: status for url, status in results if is_broken(status)}


def main():
    parser = argparse.ArgumentParser(description="Check links and images in the site")
    parser.add_argument("--root", type=Path, default=SITE_ROOT, help="Site root directory")
    parser.add_argument("--external", action="store_true", help="Also fetch external http(s) links")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="Parallel requests for --external")
    parser.add_argument("--timeout", type=float, default=LINK_TIMEOUT, help="Seconds per request")
    args = parser.parse_args()

    root = args.root
    docs, failures = load_documents(root)
    slugs = known_slugs(docs)

    print(f"Checking links in {len(docs)} documents under {root}...")

    errors = [f"[{display_path(p, root)}] {msg}" for p, msg in failures]
    warnings = []
    external = []
    total_links = 0

    for doc in docs:
        doc_errors, doc_external = check_document_links(doc, root, slugs)
        total_links += len(doc.links) + len(doc.images)
        errors.extend(doc_errors)
        external.extend(doc_external)
        status = "✗" if doc_errors else "✓"
        print(f"{status} {display_path(doc.path, root)}")

    if args.external:
        unique = {url for _, url in external}
        print(f"\nFound {len(unique)} unique external URLs. Validating in parallel...")
        broken = check_external([url for _, url in external], args.workers, args.timeout)
        for where, url in external:
            if url in broken:
                errors.append(f"{where} Status {broken[url]} | {url}")
    elif external:
        warnings.append(f"{len(external)} external links not fetched (use --external)")

    print("\n--- LINK VALIDATION REPORT ---")
    print(f"Documents: {len(docs)}")
    print(f"Total Links: {total_links}")
    print_issues(errors, warnings)

    if errors:
        print(f"\n✗ {len(errors)} broken links")
        sys.exit(1)
    print("\n✓ All links are healthy!")
    sys.exit(0)


if __name__ == "__main__":
    main()
