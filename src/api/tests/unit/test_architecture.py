"""Architecture tests using pytest-archon.

These tests enforce DDD boundaries between layers and between the
IAM and Scan bounded contexts.
"""

from pytest_archon import archrule


class TestBoundedContextIsolation:
    """IAM is consumed by Scan, never the other way around."""

    def test_iam_does_not_import_scan(self):
        (
            archrule("iam_no_scan")
            .match("iam*")
            .should_not_import("scan*")
            .check("iam")
        )

    def test_scan_core_does_not_import_iam(self):
        """Only the scan presentation layer authenticates callers."""
        (
            archrule("scan_core_no_iam")
            .match("scan.domain*", "scan.ports*", "scan.application*")
            .should_not_import("iam*")
            .check("scan")
        )


class TestDomainLayerBoundaries:
    """Domain layers stay free of frameworks and outer layers."""

    def test_iam_domain_is_framework_agnostic(self):
        (
            archrule("iam_domain_no_frameworks")
            .match("iam.domain*")
            .should_not_import("fastapi*", "starlette*", "sqlalchemy*", "httpx*")
            .check("iam")
        )

    def test_iam_domain_does_not_import_outer_layers(self):
        (
            archrule("iam_domain_no_outer_layers")
            .match("iam.domain*")
            .should_not_import(
                "iam.application*", "iam.infrastructure*", "iam.presentation*"
            )
            .check("iam")
        )

    def test_scan_domain_is_framework_agnostic(self):
        (
            archrule("scan_domain_no_frameworks")
            .match("scan.domain*")
            .should_not_import("fastapi*", "starlette*", "sqlalchemy*", "httpx*")
            .check("scan")
        )


class TestPortsLayerBoundaries:
    """Ports define interfaces and do not know their implementations."""

    def test_iam_ports_do_not_import_infrastructure(self):
        (
            archrule("iam_ports_no_infrastructure")
            .match("iam.ports*")
            .should_not_import("iam.infrastructure*")
            .check("iam")
        )

    def test_scan_ports_do_not_import_infrastructure(self):
        (
            archrule("scan_ports_no_infrastructure")
            .match("scan.ports*")
            .should_not_import("scan.infrastructure*", "httpx*")
            .check("scan")
        )

    def test_iam_application_does_not_import_presentation(self):
        (
            archrule("iam_application_no_presentation")
            .match("iam.application*")
            .should_not_import("iam.presentation*", "fastapi*")
            .check("iam")
        )

    def test_scan_application_does_not_import_presentation(self):
        (
            archrule("scan_application_no_presentation")
            .match("scan.application*")
            .should_not_import("scan.presentation*", "fastapi*")
            .check("scan")
        )
