"""
RuleApp promotion between two Rule Execution Servers.

The promoter picks the highest version of a RuleApp on the source server
and replicates it to the destination, followed by the managed XOM
libraries and XOM archives referenced by its rulesets. It applies to
servers where the XOM is deployed separately from the RuleApp.

Without ``execute`` every read still happens (probes, descriptor fetches
and archive downloads into the staging directory) but no POST is sent.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from shared.errors import PromoterException
from shared.logging import clear_context, get_logger, set_promotion_id

from ..adapters.artifact_store import ArtifactStore
from ..adapters.res_client import ResApiClient
from ..domain.endpoint import ServerEndpoint
from ..domain.models import (
    LibraryDescriptor,
    PromotionReport,
    PromotionStatus,
    RuleAppDescriptor,
    is_library_uri,
    managed_xom_uris,
    uri_name_version,
    xom_name,
)


class DiagnosticSink(Protocol):
    def info(self, event: str, **kw: Any) -> Any: ...
    def warning(self, event: str, **kw: Any) -> Any: ...
    def error(self, event: str, **kw: Any) -> Any: ...


class Promoter:
    """Replicates RuleApps from a source RES to a destination RES.

    ``skip_existing_xom`` controls what happens when a XOM is already
    present on the destination. By default it is downloaded and posted
    again; when set, the XOM is left alone.
    """

    def __init__(
        self,
        source: ResApiClient,
        destination: ResApiClient,
        store: Optional[ArtifactStore] = None,
        *,
        skip_existing_xom: bool = False,
        logger: Optional[DiagnosticSink] = None,
    ) -> None:
        self.source = source
        self.destination = destination
        self.store = store or source.store
        self.skip_existing_xom = skip_existing_xom
        self.logger = logger or get_logger("promoter")
        self._report: Optional[PromotionReport] = None

    @classmethod
    def from_endpoints(
        cls,
        source: ServerEndpoint,
        destination: ServerEndpoint,
        *,
        stage_dir: str = "./data",
        timeout: float = 30.0,
        skip_existing_xom: bool = False,
        logger: Optional[DiagnosticSink] = None,
    ) -> "Promoter":
        store = ArtifactStore(stage_dir, logger=logger)
        return cls(
            ResApiClient(source, timeout=timeout, store=store, logger=logger),
            ResApiClient(destination, timeout=timeout, store=store, logger=logger),
            store,
            skip_existing_xom=skip_existing_xom,
            logger=logger,
        )

    def close(self) -> None:
        self.source.close()
        self.destination.close()

    def __enter__(self) -> "Promoter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def replicate(self, ruleapp_name: str, execute: bool) -> PromotionReport:
        """Promote the highest version of ``ruleapp_name``.

        Errors do not escape: they end the promotion and are carried by
        the returned report (see ``PromotionReport.raise_for_error``).
        """
        report = PromotionReport(ruleapp=ruleapp_name, execute=execute)
        report.promotion_id = set_promotion_id()
        self._report = report
        try:
            document = self.source.get_json(f"/ruleapps/{ruleapp_name}/highest")
            if document is None:
                self.logger.error("RuleApp is not deployed on source RES", ruleapp=ruleapp_name)
                report.status = PromotionStatus.NOT_ON_SOURCE
                return report

            descriptor = RuleAppDescriptor.parse(document)
            report.version = descriptor.version
            self.logger.info(
                "Found RuleApp version on source RES",
                ruleapp=ruleapp_name,
                version=descriptor.version
            )
            self.replicate_ruleapp(descriptor, execute, ruleapp_name=ruleapp_name)
            self.replicate_xoms(descriptor, execute)
            report.status = PromotionStatus.PROMOTED if execute else PromotionStatus.SIMULATED
        except PromoterException as exc:
            self.logger.error(
                "Promotion failed",
                ruleapp=ruleapp_name,
                code=exc.code,
                error=exc.message,
                details=exc.details
            )
            report.status = PromotionStatus.FAILED
            report.error = exc
        finally:
            self._report = None
            clear_context()
        return report

    def replicate_ruleapp(
        self,
        descriptor: RuleAppDescriptor,
        execute: bool,
        *,
        ruleapp_name: Optional[str] = None,
    ) -> None:
        """Copy the RuleApp archive unless the destination already has this version."""
        name = ruleapp_name or descriptor.name
        resource = f"/ruleapps/{name}/{descriptor.version}"
        if self.destination.get_json(resource) is not None:
            self.logger.error("RuleApp is already deployed on destination RES", ruleapp=name,
                              version=descriptor.version)
            self._record("ruleapp", f"{name}/{descriptor.version}", "already_present")
            return

        archive_path = self.store.ruleapp_archive_path(name)
        self.source.get_to_file(f"{resource}/archive", archive_path)
        self.logger.info("Saved source RES archive", path=str(archive_path))

        if execute:
            self.destination.post_bytes("/ruleapps", self.store.read(archive_path))
        self.logger.info(
            "Deployed RuleApp archive" if execute else "Simulated RuleApp archive deployment",
            path=str(archive_path),
            destination=self.destination.base_url
        )
        self._record("ruleapp", f"{name}/{descriptor.version}", _outcome(execute), str(archive_path))

    def replicate_xoms(self, descriptor: RuleAppDescriptor, execute: bool) -> None:
        """Copy every managed XOM library and XOM the rulesets reference."""
        uris = managed_xom_uris(descriptor)
        for uri in uris:
            self.logger.info("Found managed XOM entry used by source RuleApp", uri=uri)

        for uri in uris:
            if is_library_uri(uri):
                self.replicate_library(uri, execute)
            else:
                self.replicate_xom(uri, execute)

    def replicate_library(self, library_uri: str, execute: bool) -> None:
        """Create the library on the destination, then copy its member XOMs.

        A library already present on the destination is skipped together
        with its members.
        """
        name_version = uri_name_version(library_uri)
        resource = f"/libraries/{name_version}"
        if self.destination.get_json(resource) is not None:
            self.logger.info("Library is already deployed on destination RES", uri=library_uri)
            self._record("library", name_version, "already_present")
            return

        library = LibraryDescriptor.parse(self.source.get_json(resource))
        if execute:
            self.destination.post_text(resource, library.content_body(), "text/plain")
        self.logger.info(
            "Deployed library definition" if execute else "Simulated library definition deployment",
            resource=resource,
            content=library.content_body(),
            destination=self.destination.base_url
        )
        self._record("library", name_version, _outcome(execute))

        for member_uri in library.content:
            self.replicate_xom(member_uri, execute)

    def replicate_xom(self, xom_uri: str, execute: bool) -> None:
        name_version = uri_name_version(xom_uri)
        name = xom_name(xom_uri)
        resource = f"/xoms/{name_version}"
        if self.destination.get_json(resource) is not None:
            self.logger.info("XOM is already deployed on destination RES", uri=xom_uri)
            if self.skip_existing_xom:
                self._record("xom", name_version, "already_present")
                return

        archive_path = self.store.xom_archive_path(name)
        self.source.get_to_file(f"{resource}/bytecode", archive_path)
        self.logger.info("Saved source RES XOM", path=str(archive_path))

        # Posted to /xoms/{name}: the version is not part of the destination path.
        if execute:
            self.destination.post_bytes(f"/xoms/{name}", self.store.read(archive_path))
        self.logger.info(
            "Deployed XOM archive" if execute else "Simulated XOM archive deployment",
            path=str(archive_path),
            destination=self.destination.base_url
        )
        self._record("xom", name_version, _outcome(execute), str(archive_path))

    def _record(self, kind: str, target: str, outcome: str, staged_path: Optional[str] = None) -> None:
        if self._report is not None:
            self._report.record(kind, target, outcome, staged_path)


def _outcome(execute: bool) -> str:
    return "deployed" if execute else "simulated"
