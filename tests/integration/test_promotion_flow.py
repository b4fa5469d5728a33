"""
End-to-end promotion scenarios between two in-memory Rule Execution Servers.
"""

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_promoter.app.adapters.artifact_store import ArtifactStore
from service_promoter.app.adapters.res_client import ResApiClient
from service_promoter.app.domain.endpoint import ServerEndpoint
from service_promoter.app.domain.models import PromotionStatus
from service_promoter.app.promotion.promoter import Promoter
from shared.test_helpers import FakeResServer, test_data_factory


def build_promoter(source: FakeResServer, destination: FakeResServer, **kwargs) -> Promoter:
    """Promoter wired to the fakes, staging into ./data."""
    logger = kwargs.get("logger")
    store = ArtifactStore(logger=logger)
    return Promoter(
        ResApiClient(
            ServerEndpoint("localhost", "9081", "resAdmin", "resAdmin"),
            transport=source.transport(),
            store=store,
            logger=logger,
        ),
        ResApiClient(
            ServerEndpoint("localhost", "9080", "rtsAdmin", "rtsAdmin"),
            transport=destination.transport(),
            store=store,
            logger=logger,
        ),
        store,
        **kwargs
    )


class TestPromotionFlow:
    """Promotion scenarios run against the default ./data staging directory."""

    @pytest.fixture(autouse=True)
    def workdir(self, monkeypatch, tmp_path):
        """Run from a scratch directory holding ./data."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / "data").mkdir()
        return tmp_path

    @pytest.fixture
    def source(self):
        return test_data_factory.loan_source()

    @pytest.fixture
    def destination(self, source):
        return test_data_factory.empty_destination(source)

    def promoter(self, source, destination):
        return build_promoter(source, destination)

    def test_fresh_promote(self, workdir, source, destination):
        """S1: empty destination receives RuleApp, library and XOM in order."""
        with self.promoter(source, destination) as promoter:
            report = promoter.replicate("loan", execute=True)

        assert report.status == PromotionStatus.PROMOTED
        posts = destination.posts()
        assert [post.path for post in posts] == ["/ruleapps", "/libraries/libA/2", "/xoms/xomA"]
        assert posts[1].body == b"res://xomA/2"
        assert posts[1].headers["content-type"].startswith("text/plain")
        assert posts[2].body == source.xoms["xomA/2"]
        assert (workdir / "data" / "loan_ruleapp.jar").is_file()
        assert (workdir / "data" / "xomA").is_file()

    def test_dry_run(self, workdir, source, destination):
        """S2: same inputs without execute, files staged but nothing posted."""
        with self.promoter(source, destination) as promoter:
            report = promoter.replicate("loan", execute=False)

        assert report.status == PromotionStatus.SIMULATED
        assert destination.posts() == []
        assert (workdir / "data" / "loan_ruleapp.jar").read_bytes() == source.ruleapp_archives["loan/1.3"]
        assert (workdir / "data" / "xomA").read_bytes() == source.xoms["xomA/2"]

    def test_ruleapp_already_deployed(self, source, destination):
        """S3: existing RuleApp is neither fetched nor posted; XOM phase proceeds."""
        destination.add_ruleapp(source.ruleapps["loan/1.3"], source.ruleapp_archives["loan/1.3"])
        with self.promoter(source, destination) as promoter:
            report = promoter.replicate("loan", execute=True)

        assert report.ok
        assert source.gets("/ruleapps/loan/1.3/archive") == []
        assert [post.path for post in destination.posts()] == ["/libraries/libA/2", "/xoms/xomA"]

    def test_library_already_deployed(self, source, destination):
        """S4: existing library is skipped together with its member XOMs."""
        destination.add_library("libA/2", ["res://xomA/2"])
        with self.promoter(source, destination) as promoter:
            promoter.replicate("loan", execute=True)

        assert [post.path for post in destination.posts()] == ["/ruleapps"]
        assert destination.gets("/xoms/xomA/2") == []

    def test_shared_xom_across_rulesets(self):
        """S5: the same managed URI in two rulesets is promoted once."""
        source = FakeResServer()
        source.add_ruleapp(
            test_data_factory.ruleapp_descriptor("loan/1.3", "res://xomA/2", rulesets=2),
            b"loan-archive",
        )
        source.add_xom("xomA/2", b"xomA-bytes")
        destination = test_data_factory.empty_destination(source)

        with self.promoter(source, destination) as promoter:
            promoter.replicate("loan", execute=True)

        assert len(source.gets("/xoms/xomA/2/bytecode")) == 1
        assert [post.path for post in destination.posts()] == ["/ruleapps", "/xoms/xomA"]

    def test_missing_source_ruleapp(self, source, destination):
        """S6: unknown RuleApp ends normally after the single source lookup."""
        with self.promoter(source, destination) as promoter:
            report = promoter.replicate("pricing", execute=True)

        assert report.ok
        assert report.status == PromotionStatus.NOT_ON_SOURCE
        assert len(source.requests) == 1
        assert destination.requests == []


class TestPromotionProperties:
    """Properties that hold for any source content."""

    @pytest.fixture(autouse=True)
    def workdir(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "data").mkdir()
        return tmp_path

    def promoter(self, source, destination):
        return build_promoter(source, destination)

    @staticmethod
    def catalogue():
        """A handful of source layouts: direct XOMs, libraries, both, none."""
        layouts = {
            "plain": [],
            "direct": ["res://xomA/2"],
            "library": ["reslib://libA/2"],
            "mixed": ["reslib://libA/2", "res://xomB/1", "reslib://libA/2"],
        }
        for name, uris in layouts.items():
            source = FakeResServer()
            source.add_ruleapp(test_data_factory.ruleapp_descriptor(f"{name}/1.0", *uris), f"{name}-archive".encode())
            source.add_ruleapp(test_data_factory.ruleapp_descriptor(f"{name}/1.10", *uris), f"{name}-archive-10".encode())
            source.add_library("libA/2", ["res://xomA/2", "res://xomC/1"])
            for xom in ("xomA/2", "xomB/1", "xomC/1"):
                source.add_xom(xom, f"{xom}-bytes".encode())
            yield name, source

    def test_dry_run_never_posts(self):
        """Property 1."""
        for name, source in self.catalogue():
            destination = test_data_factory.empty_destination(source)
            with self.promoter(source, destination) as promoter:
                assert promoter.replicate(name, execute=False).ok
            assert destination.posts() == [], name

    def test_absent_ruleapp_touches_nothing(self):
        """Property 2."""
        for _, source in self.catalogue():
            destination = test_data_factory.empty_destination(source)
            with self.promoter(source, destination) as promoter:
                promoter.replicate("absent", execute=True)
            assert destination.requests == []

    def test_posted_archive_matches_source(self):
        """Property 4: highest version archive is posted byte for byte."""
        for name, source in self.catalogue():
            destination = test_data_factory.empty_destination(source)
            with self.promoter(source, destination) as promoter:
                report = promoter.replicate(name, execute=True)
            assert report.version == "1.10"
            ruleapp_posts = [post for post in destination.posts() if post.path == "/ruleapps"]
            assert [post.body for post in ruleapp_posts] == [source.ruleapp_archives[f"{name}/1.10"]]

    def test_second_run_is_idempotent(self):
        """Property 5."""
        for name, source in self.catalogue():
            destination = test_data_factory.empty_destination(source)
            with self.promoter(source, destination) as promoter:
                promoter.replicate(name, execute=True)
            state = (dict(destination.ruleapps), dict(destination.libraries), dict(destination.xoms))
            first_run = len(destination.posts())

            with self.promoter(source, destination) as promoter:
                report = promoter.replicate(name, execute=True)

            second_posts = [post.path for post in destination.posts()[first_run:]]
            assert report.ok
            assert "/ruleapps" not in second_posts
            assert "/libraries/libA/2" not in second_posts
            assert (destination.ruleapps, destination.libraries, destination.xoms) == state
