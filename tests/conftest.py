"""
Pytest fixtures: a small throwaway site built under tmp_path.
"""
import textwrap
from pathlib import Path

import pytest

INDEX = """\
---
layout: home
title: Projects
---
# Public repositories

- [kube-autoscale-notes](https://github.com/example/kube-autoscale-notes) - Notes on scaling pods
- [jwt-demo](https://github.com/example/jwt-demo): FastAPI JWT verification demo
"""

SCALING_POST = """\
---
layout: post
title: Scaling pods with the HPA
slug: scaling-pods
description: How the horizontal pod autoscaler reacts to load
keywords: kubernetes, autoscaling
---
## Setup

See [the image layering post](/docker-layers/) and [setup](#setup).

![diagram](/assets/hpa.png)

```yaml
link: [not a link](missing.md)
```
"""

DOCKER_POST = """\
---
layout: post
title: Docker image layers
slug: docker-layers
description: Why layer order matters
keywords:
  - docker
  - kubernetes
---
Back to [scaling](2024-01-05-scaling-pods.md). Source on <https://github.com/example/layers>.
"""


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path) -> Path:
    """A site root with an index page, two posts and two images (one unused)."""
    write(tmp_path / "index.md", INDEX)
    write(tmp_path / "_posts" / "2024-01-05-scaling-pods.md", SCALING_POST)
    write(tmp_path / "_posts" / "2024-03-10-docker-layers.md", DOCKER_POST)
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "hpa.png").write_bytes(b"\x89PNG\r\n")
    (tmp_path / "assets" / "unused.png").write_bytes(b"\x89PNG\r\n")
    return tmp_path


@pytest.fixture
def write_post(site):
    """Write an extra post into the site: write_post(filename, content)."""
    def _write(name: str, content: str) -> Path:
        return write(site / "_posts" / name, content)
    return _write
