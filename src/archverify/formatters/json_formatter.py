"""JSON formatter for archverify."""

import json

from ..report import Report
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render the report as JSON. Identical reports give identical text."""

    def render(self, report: Report) -> None:
        print(self.format(report))

    def format(self, report: Report) -> str:
        return json.dumps(report.to_dict(), indent=2)
