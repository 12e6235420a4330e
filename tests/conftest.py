"""Shared test fixtures for archverify tests."""

import json

import pytest

from archverify.config import RuleSetConfig
from archverify.graph import build_dependency_graph
from archverify.model import extract_model


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep ARCHVERIFY_* variables and a stray archverify.toml out of every test."""
    import os

    for key in list(os.environ):
        if key.startswith("ARCHVERIFY_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config():
    """Default rule set."""
    return RuleSetConfig()


@pytest.fixture
def make_class():
    """Factory for class declarations in the parser's JSON shape."""

    def _make(path, name, markers=None, references=None, **extra):
        item = {"kind": "class", "path": path, "name": name}
        if markers:
            item["markers"] = list(markers)
        if references:
            item["references"] = list(references)
        item.update(extra)
        return item

    return _make


@pytest.fixture
def analyze(config):
    """Extract a model and build its graph from declarations."""

    def _analyze(items, cfg=None):
        model = extract_model(items, cfg or config)
        return model, build_dependency_graph(model)

    return _analyze


@pytest.fixture
def run_rule(analyze, config):
    """Run a single rule's raw check (no engine post-processing)."""

    def _run(rule, items, cfg=None):
        model, graph = analyze(items, cfg)
        return rule.check(model, graph, cfg or config)

    return _run


@pytest.fixture
def clean_declarations(make_class):
    """A small conformant codebase: two modules, one config namespace.

    billing
      BillingService            facade
      BillingErrorCode          error enum
      common.InvoiceIssuedEvent public event
      invoicing                 triggered use case (controller)
    shipping
      ShippingService           facade, calls billing's facade and event
      dispatch                  triggered use case (controller)
    config
      AppConfiguration, DataSourceSetup
    """
    return [
        make_class("config", "AppConfiguration", ["Configuration"]),
        make_class("config", "DataSourceSetup", references=["config.AppConfiguration"]),
        make_class(
            "billing",
            "BillingService",
            ["Service"],
            references=["billing.invoicing.IssueInvoiceHandler"],
            location="billing/BillingService.java:3",
        ),
        make_class("billing", "BillingErrorCode"),
        make_class("billing.common", "InvoiceIssuedEvent", ["Event"]),
        make_class(
            "billing.invoicing",
            "IssueInvoiceController",
            ["RestController"],
            references=["billing.invoicing.IssueInvoiceHandler"],
        ),
        make_class(
            "billing.invoicing",
            "IssueInvoiceHandler",
            ["Transactional"],
            references=[
                "billing.invoicing.InvoiceRepository",
                "billing.invoicing.InvoiceEntity",
                "billing.common.InvoiceIssuedEvent",
            ],
        ),
        make_class("billing.invoicing", "InvoiceRepository", ["Repository"]),
        make_class("billing.invoicing", "InvoiceEntity", ["Entity"]),
        make_class(
            "shipping",
            "ShippingService",
            ["Service"],
            references=["billing.BillingService", "billing.common.InvoiceIssuedEvent"],
        ),
        make_class(
            "shipping.dispatch",
            "DispatchController",
            ["Controller"],
            references=["shipping.dispatch.DispatchHandler"],
        ),
        make_class(
            "shipping.dispatch",
            "DispatchHandler",
            ["Transactional"],
            references=["billing.common.InvoiceIssuedEvent", "java.util.List"],
        ),
    ]


@pytest.fixture
def write_declarations(tmp_path):
    """Write declarations as JSON and return the file path."""

    def _write(items, name="declarations.json"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(items), encoding="utf-8")
        return path

    return _write
