"""
Tests for the probe catalog (registries, GitLab, RDAP, trademark helpers).

HTTP traffic goes through httpx.MockTransport; no network access.
"""

import asyncio

import httpx
import pytest

from checkname.errors import ConfigurationError
from checkname.models import ProbeCategory, ResultKind
from checkname.probes import PROBE_NAMES, get_probe, get_probes, probes_by_category
from checkname.probes.domain import (
    IANA_RDAP_BOOTSTRAP,
    RdapDomainProbe,
    clear_bootstrap_cache,
    parse_bootstrap,
)
from checkname.probes.gitlab import GitLabProbe
from checkname.probes.registries import (
    GoProbe,
    HomebrewProbe,
    NixpkgsProbe,
    NpmProbe,
    NuGetProbe,
    PackagistProbe,
    PyPIProbe,
)
from checkname.probes.trademark import ManualProbe, trademark_probes


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def status(code: int, **kwargs):
    def handler(request):
        return httpx.Response(code, **kwargs)
    return handler


class TestLookupProbe:
    """Tests for direct-lookup registries."""

    @pytest.mark.asyncio
    async def test_404_is_available(self):
        async with mock_client(status(404)) as client:
            result = await NpmProbe(client=client).check("foo")

        assert result.kind == ResultKind.DETERMINED
        assert result.available is True
        assert result.category == ProbeCategory.PACKAGE

    @pytest.mark.asyncio
    async def test_200_is_taken_with_reference_url(self):
        async with mock_client(status(200, json={})) as client:
            result = await PyPIProbe(client=client).check("requests")

        assert result.available is False
        assert result.url == "https://pypi.org/project/requests/"

    @pytest.mark.asyncio
    async def test_other_status_fails(self):
        async with mock_client(status(503)) as client:
            result = await NpmProbe(client=client).check("foo")

        assert result.is_failed
        assert result.error == "HTTP 503"

    @pytest.mark.asyncio
    async def test_lookup_url(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(404)

        async with mock_client(handler) as client:
            await NpmProbe(client=client).check("foo")

        assert seen == ["https://registry.npmjs.org/foo"]

    @pytest.mark.asyncio
    async def test_nuget_lowercases(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(404)

        async with mock_client(handler) as client:
            await NuGetProbe(client=client).check("MyLib")

        assert seen == ["/v3/registration5-semver1/mylib/index.json"]


class TestProbeFailures:
    """check() turns every failure into a FAILED result."""

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        async with mock_client(handler) as client:
            result = await NpmProbe(client=client).check("foo")

        assert result.is_failed
        assert result.error.startswith("Connection error")

    @pytest.mark.asyncio
    async def test_http_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with mock_client(handler) as client:
            result = await NpmProbe(client=client).check("foo")

        assert result.is_failed
        assert result.error.startswith("Timed out")

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        async def handler(request):
            await asyncio.sleep(1)
            return httpx.Response(404)

        async with mock_client(handler) as client:
            result = await NpmProbe(client=client, timeout=0.05).check("foo")

        assert result.is_failed
        assert result.error == "Timed out after 0.05s"

    @pytest.mark.asyncio
    async def test_bad_json(self):
        async with mock_client(status(200, text="not json")) as client:
            result = await PackagistProbe(client=client).check("foo")

        assert result.is_failed
        assert result.error


class TestSearchProbes:
    """Tests for Go, Packagist, Homebrew and nixpkgs."""

    @pytest.mark.asyncio
    async def test_go_no_results(self):
        html = "<p>Showing <strong>0</strong> results</p>"
        async with mock_client(status(200, text=html)) as client:
            result = await GoProbe(client=client).check("zzqx")

        assert result.available is True

    @pytest.mark.asyncio
    async def test_go_results(self):
        html = "<p>Showing <strong>12</strong> results</p>"
        async with mock_client(status(200, text=html)) as client:
            result = await GoProbe(client=client).check("cobra")

        assert result.available is False
        assert "pkg.go.dev/search" in result.url

    @pytest.mark.asyncio
    async def test_packagist_vendor_match(self):
        body = {"results": [{"name": "other/thing"}, {"name": "acme/foo"}]}
        async with mock_client(status(200, json=body)) as client:
            result = await PackagistProbe(client=client).check("foo")

        assert result.available is False

    @pytest.mark.asyncio
    async def test_packagist_partial_match_is_available(self):
        body = {"results": [{"name": "acme/foobar"}]}
        async with mock_client(status(200, json=body)) as client:
            result = await PackagistProbe(client=client).check("foo")

        assert result.available is True

    @pytest.mark.asyncio
    async def test_homebrew_cask(self):
        def handler(request):
            return httpx.Response(200 if "/cask/" in request.url.path else 404, json={})

        async with mock_client(handler) as client:
            result = await HomebrewProbe(client=client).check("foo")

        assert result.available is False
        assert result.url == "https://formulae.brew.sh/cask/foo"

    @pytest.mark.asyncio
    async def test_homebrew_neither(self):
        async with mock_client(status(404)) as client:
            result = await HomebrewProbe(client=client).check("foo")

        assert result.available is True

    @pytest.mark.asyncio
    async def test_homebrew_error(self):
        async with mock_client(status(500)) as client:
            result = await HomebrewProbe(client=client).check("foo")

        assert result.is_failed

    @pytest.mark.asyncio
    async def test_nixpkgs_by_name(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return httpx.Response(200, json={})

        async with mock_client(handler) as client:
            result = await NixpkgsProbe(client=client).check("ripgrep")

        assert result.available is False
        assert seen == ["/repos/NixOS/nixpkgs/contents/pkgs/by-name/ri/ripgrep"]

    @pytest.mark.asyncio
    async def test_nixpkgs_code_search_fallback(self):
        def handler(request):
            if "/search/code" in request.url.path:
                return httpx.Response(200, json={"total_count": 0})
            return httpx.Response(404)

        async with mock_client(handler) as client:
            result = await NixpkgsProbe(client=client).check("zzqx")

        assert result.available is True

    @pytest.mark.asyncio
    async def test_nixpkgs_rate_limited(self):
        async with mock_client(status(403)) as client:
            result = await NixpkgsProbe(client=client).check("foo")

        assert result.is_failed
        assert result.error == "GitHub API rate limited"


class TestGitLabProbe:
    """Tests for GitLab project search."""

    @pytest.mark.asyncio
    async def test_exact_match(self):
        body = [
            {"name": "foo-extra", "web_url": "https://gitlab.com/a/foo-extra"},
            {"name": "Foo", "web_url": "https://gitlab.com/b/foo"},
        ]
        async with mock_client(status(200, json=body)) as client:
            result = await GitLabProbe(client=client).check("foo")

        assert result.available is False
        assert result.url == "https://gitlab.com/b/foo"

    @pytest.mark.asyncio
    async def test_empty_page_stops(self):
        calls = []

        def handler(request):
            calls.append(request.url.params["page"])
            return httpx.Response(200, json=[])

        async with mock_client(handler) as client:
            result = await GitLabProbe(client=client).check("foo")

        assert result.available is True
        assert calls == ["1"]

    @pytest.mark.asyncio
    async def test_reads_at_most_three_pages(self):
        calls = []

        def handler(request):
            calls.append(request.url.params["page"])
            return httpx.Response(200, json=[{"name": "foobar"}] * 100)

        async with mock_client(handler) as client:
            result = await GitLabProbe(client=client).check("foo")

        assert result.available is True
        assert calls == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        async with mock_client(status(429)) as client:
            result = await GitLabProbe(client=client).check("foo")

        assert result.error == "Rate limited by GitLab"


class TestRdapDomainProbe:
    """Tests for RDAP domain probes."""

    @pytest.fixture(autouse=True)
    def reset_bootstrap(self):
        clear_bootstrap_cache()
        yield
        clear_bootstrap_cache()

    def test_parse_bootstrap(self):
        data = {"services": [[["com", "NET"], ["https://rdap.example/"]], [["zz"], []]]}

        assert parse_bootstrap(data) == {"com": "https://rdap.example", "net": "https://rdap.example"}

    @pytest.mark.asyncio
    async def test_pinned_server(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            return httpx.Response(404)

        async with mock_client(handler) as client:
            probe = RdapDomainProbe("dev", rdap_server="https://rdap.test/", client=client)
            result = await probe.check("foo")

        assert probe.name == "domain-dev"
        assert result.available is True
        assert seen == ["https://rdap.test/domain/foo.dev"]

    @pytest.mark.asyncio
    async def test_registered(self):
        async with mock_client(status(200, json={})) as client:
            result = await RdapDomainProbe("dev", rdap_server="https://rdap.test", client=client).check("foo")

        assert result.available is False
        assert result.url == "https://foo.dev"

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        async with mock_client(status(429)) as client:
            result = await RdapDomainProbe("dev", rdap_server="https://rdap.test", client=client).check("foo")

        assert result.error == "Rate limited - try again later"

    @pytest.mark.asyncio
    async def test_bootstrap_lookup(self):
        bootstrap = {"services": [[["com"], ["https://rdap.verisign.test/"]]]}
        seen = []

        def handler(request):
            seen.append(str(request.url))
            if str(request.url) == IANA_RDAP_BOOTSTRAP:
                return httpx.Response(200, json=bootstrap)
            return httpx.Response(404)

        async with mock_client(handler) as client:
            probe = RdapDomainProbe("com", client=client)
            first = await probe.check("foo")
            second = await probe.check("bar")

        assert first.available and second.available
        assert seen.count(IANA_RDAP_BOOTSTRAP) == 1
        assert "https://rdap.verisign.test/domain/bar.com" in seen

    @pytest.mark.asyncio
    async def test_unknown_tld(self):
        bootstrap = {"services": [[["com"], ["https://rdap.verisign.test/"]]]}
        async with mock_client(status(200, json=bootstrap)) as client:
            result = await RdapDomainProbe("zz", client=client).check("foo")

        assert result.is_failed
        assert result.error == "No RDAP server found for TLD .zz"


class TestTrademarkProbes:
    """Trademark helpers never touch the network."""

    @pytest.mark.asyncio
    async def test_manual_result(self):
        def handler(request):
            raise AssertionError("no request expected")

        async with mock_client(handler) as client:
            probe = ManualProbe("uspto", "https://tm.test/?q={name}", "Look it up", client=client)
            result = await probe.check("my tool")

        assert result.kind == ResultKind.MANUAL_CHECK
        assert result.category == ProbeCategory.TRADEMARK
        assert result.url == "https://tm.test/?q=my%20tool"
        assert result.error == "Look it up"

    def test_catalog(self):
        names = [p.name for p in trademark_probes()]
        assert names == ["uspto", "google-software", "google-opensource", "fossmarks"]


class TestProbeRegistry:
    """Tests for name-based probe lookup."""

    def test_catalog_order(self):
        assert PROBE_NAMES[:3] == ["npm", "npm-org", "pypi"]
        assert PROBE_NAMES[-4:] == ["uspto", "google-software", "google-opensource", "fossmarks"]
        assert len(PROBE_NAMES) == 20

    def test_names_match_probes(self):
        for name in PROBE_NAMES:
            assert get_probe(name).name == name

    def test_case_insensitive(self):
        assert get_probe("NPM").name == "npm"

    def test_unknown_raises(self):
        with pytest.raises(ConfigurationError, match="Unknown probe"):
            get_probe("cpan")

    def test_get_probes_dedupes(self):
        probes = get_probes(["npm", "pypi", "NPM"])
        assert [p.name for p in probes] == ["npm", "pypi"]

    def test_by_category(self):
        names = [p.name for p in probes_by_category(ProbeCategory.DOMAIN)]
        assert names == ["domain-dev", "domain-com", "domain-io"]

    def test_timeout_passed_through(self):
        assert get_probe("npm", timeout=2.5).timeout == 2.5
