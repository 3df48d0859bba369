"""
Trademark helpers

There is no free API for trademark search, so these probes never touch the
network. They return a MANUAL_CHECK result pointing at where a human should
look.
"""

import httpx

from ..models import ProbeCategory, ProbeResult
from .base import Probe, encode


class ManualProbe(Probe):
    """A probe that only builds a URL for a human to follow."""

    category = ProbeCategory.TRADEMARK

    def __init__(self, name: str, url_template: str, note: str, **kwargs):
        """
        Args:
            name: Probe name
            url_template: Formatted with {name} (percent-encoded) and {raw}
            note: Message shown next to the URL
        """
        super().__init__(**kwargs)
        self.name = name
        self.url_template = url_template
        self.note = note

    async def check(self, name: str) -> ProbeResult:
        return self.manual(name, self.build_url(name), self.note)

    async def _check(self, name: str, client: httpx.AsyncClient) -> ProbeResult:
        return self.manual(name, self.build_url(name), self.note)

    def build_url(self, name: str) -> str:
        return self.url_template.format(name=encode(name), raw=name)


def trademark_probes(**kwargs) -> list[ManualProbe]:
    """The manual-check helpers, in display order."""
    return [
        ManualProbe(
            "uspto",
            "https://tmsearch.uspto.gov/search/search-results?query={name}&section=default",
            "Manual check required - click URL to search USPTO TESS",
            **kwargs,
        ),
        ManualProbe(
            "google-software",
            "https://www.google.com/search?q=%22{name}%22+software",
            "Manual check - search for existing software with this name",
            **kwargs,
        ),
        ManualProbe(
            "google-opensource",
            "https://www.google.com/search?q=%22{name}%22+open+source",
            "Manual check - search for open source projects with this name",
            **kwargs,
        ),
        ManualProbe(
            "fossmarks",
            "https://fossmarks.org/",
            "Reference resource - review FOSS trademark guidance",
            **kwargs,
        ),
    ]
