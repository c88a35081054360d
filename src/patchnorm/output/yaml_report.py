"""YAML renderer — same mapping as the JSON report."""

from __future__ import annotations

import yaml

from patchnorm.output.json_report import Result, to_dict


def render(result: Result) -> str:
    return yaml.safe_dump(to_dict(result), sort_keys=False, allow_unicode=True)
