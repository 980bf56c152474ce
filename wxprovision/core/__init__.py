"""Core Business Logic Module

This module provides the bulk user export logic, independent of Flask.

Architecture:
    - Pure Python (no Flask dependencies in core logic, except session_context)
    - Testable with a mocked WebexClient
    - Reusable across interfaces (HTTP API, CLI)

Module Structure:
    - webex/                  : Low-level Webex API client and services
    - csv_records.py          : CSV upload checks and row parsing
    - request_builder.py      : Row validation and creation requests
    - reference_data.py       : Licenses/locations keyed by name
    - license_assignment.py   : Per-user, per-license assignment
    - provisioning_service.py : Pipeline orchestration (export_users)
    - models.py               : Dataclasses shared by the pipeline
    - exceptions.py           : ProvisioningError hierarchy
    - session_context.py      : Flask session helpers
    - validators.py           : Field validation

Usage Pattern:
    These modules are NOT auto-imported so the Webex client library can be
    used standalone.

    Import explicitly when needed:
        from wxprovision.core.provisioning_service import export_users
        from wxprovision.core.webex import WebexClient, LicenseService
"""
