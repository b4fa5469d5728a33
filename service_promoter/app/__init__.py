"""
RES promoter service package.

Replicates the highest version of a RuleApp, together with the managed
XOM libraries and XOM archives its rulesets reference, from a source
Rule Execution Server to a destination one.

Structure:
- app.main: `replicate` command line entry point.
- app.domain: Endpoint records, descriptor models and promotion reports.
- app.adapters: HTTP client for the RES management API and local staging.
- app.promotion: The promotion pipeline.
"""
